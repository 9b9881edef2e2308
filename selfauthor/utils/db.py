# selfauthor/utils/db.py

import os
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import (
    create_engine, Column, Integer, String, Text, ForeignKey,
    select, update
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base, scoped_session

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Engine / Session
# ---------------------------------------------------------------------
DB_PATH = os.getenv("SQLITE_PATH", os.path.join(os.path.dirname(__file__), "..", "..", "selfauthor.db"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")

Base = declarative_base()
engine = None
SessionLocal = None


def _normalize_url(url: str) -> str:
    # Add psycopg2 driver if a bare Postgres URL is provided
    if url.startswith("postgresql://") and "+psycopg2" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


def configure(url: str):
    """(Re)bind the engine and session factory. Called at import and by tests."""
    global DATABASE_URL, engine, SessionLocal
    if SessionLocal is not None:
        SessionLocal.remove()
    if engine is not None:
        engine.dispose()

    DATABASE_URL = _normalize_url(url)
    # For SQLite, allow access from the worker threads turns run store calls in
    connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
    engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
    SessionLocal = scoped_session(sessionmaker(bind=engine, autocommit=False, autoflush=False))


configure(DATABASE_URL)


class StoreError(RuntimeError):
    """A durable-storage operation failed."""


class ConflictError(StoreError):
    """Insert rejected by a uniqueness constraint."""


# ---------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------
class UserRow(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    prompt = Column(Text, nullable=True)


class ConversationRow(Base):
    __tablename__ = "conversations"
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    conversation_summary = Column(Text, nullable=True)


@dataclass(frozen=True)
class User:
    id: int
    name: str
    persona_prompt: Optional[str] = None


@dataclass(frozen=True)
class Conversation:
    user_id: int
    summary: Optional[str] = None


def _user(row: UserRow) -> User:
    return User(id=row.id, name=row.name, persona_prompt=row.prompt)


# ---------------------------------------------------------------------
# Init
# ---------------------------------------------------------------------
def init():
    if DATABASE_URL.startswith("sqlite:///") and not DATABASE_URL.startswith("sqlite:///:memory:"):
        os.makedirs(os.path.dirname(os.path.abspath(DATABASE_URL[len("sqlite:///"):])), exist_ok=True)
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise StoreError(f"schema init failed: {e}") from e


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------
def insert_user(name: str, prompt: Optional[str]) -> User:
    s = SessionLocal()
    try:
        row = UserRow(name=name, prompt=prompt)
        s.add(row)
        s.commit()
        return _user(row)
    except IntegrityError as e:
        s.rollback()
        raise ConflictError(f"user name already exists: {name!r}") from e
    except SQLAlchemyError as e:
        s.rollback()
        raise StoreError(f"insert_user failed: {e}") from e
    finally:
        s.close()


def find_user_by_id(user_id: int) -> Optional[User]:
    s = SessionLocal()
    try:
        row = s.get(UserRow, user_id)
        return _user(row) if row else None
    except SQLAlchemyError as e:
        raise StoreError(f"find_user_by_id failed: {e}") from e
    finally:
        s.close()


def find_user_by_name(name: str) -> Optional[User]:
    s = SessionLocal()
    try:
        row = s.execute(select(UserRow).where(UserRow.name == name)).scalars().first()
        return _user(row) if row else None
    except SQLAlchemyError as e:
        raise StoreError(f"find_user_by_name failed: {e}") from e
    finally:
        s.close()


def update_user_persona(user_id: int, prompt: str) -> int:
    """Returns the number of rows changed (0 when the user does not exist)."""
    s = SessionLocal()
    try:
        res = s.execute(update(UserRow).where(UserRow.id == user_id).values(prompt=prompt))
        s.commit()
        return int(res.rowcount or 0)
    except SQLAlchemyError as e:
        s.rollback()
        raise StoreError(f"update_user_persona failed: {e}") from e
    finally:
        s.close()


def get_or_create_user(name: str, default_prompt: str) -> User:
    """
    Existing users come back untouched. A losing concurrent insert for the same
    name is resolved by reading the winner's row.
    """
    user = find_user_by_name(name)
    if user is not None:
        logger.info("existing user id=%s", user.id)
        return user
    try:
        user = insert_user(name, default_prompt)
        logger.info("created user id=%s", user.id)
        return user
    except ConflictError:
        logger.warning("concurrent create for user name; falling back to lookup")
        user = find_user_by_name(name)
        if user is None:
            raise StoreError(f"user {name!r} conflicted on insert but cannot be found")
        return user


# ---------------------------------------------------------------------
# Conversation memory
# ---------------------------------------------------------------------
def find_conversation(user_id: int) -> Optional[Conversation]:
    s = SessionLocal()
    try:
        row = s.get(ConversationRow, user_id)
        if not row:
            return None
        return Conversation(user_id=row.user_id, summary=row.conversation_summary)
    except SQLAlchemyError as e:
        raise StoreError(f"find_conversation failed: {e}") from e
    finally:
        s.close()


def find_summary(user_id: int) -> Optional[str]:
    conv = find_conversation(user_id)
    return conv.summary if conv else None


def upsert_summary(user_id: int, summary: str):
    """Insert the user's summary row, or overwrite it if one exists."""
    s = SessionLocal()
    try:
        dialect = s.get_bind().dialect.name
        if dialect in ("postgresql", "sqlite"):
            insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
            stmt = insert(ConversationRow).values(user_id=user_id, conversation_summary=summary)
            stmt = stmt.on_conflict_do_update(
                index_elements=[ConversationRow.user_id],
                set_={"conversation_summary": stmt.excluded.conversation_summary},
            )
            s.execute(stmt)
        else:
            obj = s.get(ConversationRow, user_id, with_for_update=True)
            if obj is None:
                s.add(ConversationRow(user_id=user_id, conversation_summary=summary))
            else:
                obj.conversation_summary = summary
        s.commit()
    except SQLAlchemyError as e:
        s.rollback()
        raise StoreError(f"upsert_summary failed: {e}") from e
    finally:
        s.close()
