# selfauthor/turns.py
# One chat turn: identify -> load history -> reply -> re-summarize -> persist.

import asyncio
import logging
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from selfauthor.persona import effective_persona
from selfauthor.prompts import NO_REPLY, build_reply_prompt, build_summarization_prompt
from selfauthor.providers import GenerationError, first_candidate
from selfauthor.utils import db

logger = logging.getLogger(__name__)

Generator = Callable[[str], Awaitable[List[str]]]


class Stage(str, Enum):
    IDLE = "idle"
    IDENTIFIED = "identified"
    HISTORY_LOADED = "history_loaded"
    REPLIED = "replied"
    SUMMARIZED = "summarized"
    PERSISTED = "persisted"
    DONE = "done"


class TurnError(Exception):
    """
    A turn stopped in `step` ("identify", "load_history", "reply", "summarize",
    "persist") after reaching `reached`. `kind` is "unauthorized" or "internal".
    """

    def __init__(self, step: str, reached: Stage, kind: str, message: str = ""):
        super().__init__(message or f"turn failed in {step}: {kind}")
        self.step = step
        self.reached = reached
        self.kind = kind


@dataclass
class Turn:
    user_id: int
    message: str
    state: Stage = Stage.IDLE
    user: Optional[db.User] = None
    prior_summary: str = ""
    reply: str = ""
    summary: str = ""


@dataclass(frozen=True)
class TurnResult:
    reply: str
    user_id: int


# Per-user locks; entries vanish once no turn holds them.
_user_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(user_id: int) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


class TurnRunner:
    """
    Runs turns as a linear pipeline. Each stage either advances `turn.state` or
    raises; the first failure ends the turn and nothing after it runs, so the
    stored summary only changes when every stage succeeded.
    """

    def __init__(
        self,
        generate: Generator,
        default_persona: str,
        summary_min_sentences: int = 10,
        summary_max_sentences: int = 40,
        serialize: bool = True,
    ):
        self.generate = generate
        self.default_persona = default_persona
        self.summary_min_sentences = summary_min_sentences
        self.summary_max_sentences = summary_max_sentences
        self.serialize = serialize

    # -----------------------------
    # Stages
    # -----------------------------
    async def _identify(self, turn: Turn):
        turn.user = await asyncio.to_thread(db.find_user_by_id, turn.user_id)
        if turn.user is None:
            logger.warning("chat turn for unknown user id=%s", turn.user_id)
            raise TurnError("identify", turn.state, "unauthorized", "unknown user")

    async def _load_history(self, turn: Turn):
        turn.prior_summary = await asyncio.to_thread(db.find_summary, turn.user.id) or ""

    async def _reply(self, turn: Turn):
        persona = effective_persona(turn.user, self.default_persona)
        prompt = build_reply_prompt(persona, turn.prior_summary, turn.message)
        candidates = await self.generate(prompt)
        if not candidates:
            logger.warning("no reply candidate for user id=%s; using placeholder", turn.user.id)
        turn.reply = first_candidate(candidates, NO_REPLY)

    async def _summarize(self, turn: Turn):
        prompt = build_summarization_prompt(
            turn.prior_summary,
            turn.message,
            turn.reply,
            self.summary_min_sentences,
            self.summary_max_sentences,
        )
        candidates = await self.generate(prompt)
        if not candidates:
            logger.warning("no summary candidate for user id=%s; keeping prior summary", turn.user.id)
        turn.summary = first_candidate(candidates, turn.prior_summary)

    async def _persist(self, turn: Turn):
        await asyncio.to_thread(db.upsert_summary, turn.user.id, turn.summary)

    # -----------------------------
    # Pipeline
    # -----------------------------
    async def _run(self, turn: Turn) -> TurnResult:
        steps = [
            ("identify", Stage.IDENTIFIED, self._identify),
            ("load_history", Stage.HISTORY_LOADED, self._load_history),
            ("reply", Stage.REPLIED, self._reply),
            ("summarize", Stage.SUMMARIZED, self._summarize),
            ("persist", Stage.PERSISTED, self._persist),
        ]
        for name, target, step in steps:
            try:
                await step(turn)
            except TurnError:
                raise
            except (db.StoreError, GenerationError) as e:
                logger.exception("turn for user id=%s failed in %s", turn.user_id, name)
                raise TurnError(name, turn.state, "internal", str(e)) from e
            turn.state = target

        turn.state = Stage.DONE
        logger.info(
            "turn done user id=%s reply_chars=%d summary_chars=%d",
            turn.user.id, len(turn.reply), len(turn.summary),
        )
        return TurnResult(reply=turn.reply, user_id=turn.user.id)

    async def run(self, user_id: int, message: str) -> TurnResult:
        turn = Turn(user_id=user_id, message=message)
        if not self.serialize:
            return await self._run(turn)
        async with _lock_for(user_id):
            return await self._run(turn)
