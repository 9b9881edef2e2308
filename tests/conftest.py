from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Import-time defaults for selfauthor.main; each test rebinds its own database.
_BOOT_DIR = tempfile.mkdtemp(prefix="selfauthor-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_BOOT_DIR}/boot.db"
os.environ["DRY_RUN"] = "true"
os.environ.pop("OPENAI_API_KEY", None)

from selfauthor.config import Settings  # noqa: E402
from selfauthor.utils import db  # noqa: E402


TEST_PERSONA = "You are a calm test psychologist."


class ScriptedGenerator:
    """Replays candidate lists (or raises) in order and records every prompt."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def __call__(self, prompt: str) -> list[str]:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError(f"unexpected generation call: {prompt[:80]!r}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return list(item)


@pytest.fixture
def database(tmp_path: Path):
    db.configure(f"sqlite:///{tmp_path / 'selfauthor.db'}")
    db.init()
    yield db


@pytest.fixture
def settings() -> Settings:
    return Settings(default_persona=TEST_PERSONA, dry_run=True)


@pytest.fixture
def scripted():
    return ScriptedGenerator
