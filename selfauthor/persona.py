# selfauthor/persona.py
import logging
from typing import Optional

from selfauthor.utils import db

logger = logging.getLogger(__name__)


def effective_persona(user: db.User, default_persona: str) -> str:
    """The user's own persona when set and non-empty, else the process default."""
    if user.persona_prompt:
        return user.persona_prompt
    return default_persona


def get_persona(user_id: int, default_persona: str) -> Optional[str]:
    user = db.find_user_by_id(user_id)
    if user is None:
        return None
    return effective_persona(user, default_persona)


def set_persona(user_id: int, text: str) -> bool:
    """True iff the user existed and now carries `text` verbatim."""
    updated = db.update_user_persona(user_id, text) > 0
    if not updated:
        logger.info("persona update for unknown user id=%s", user_id)
    return updated
