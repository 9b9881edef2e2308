# selfauthor/config.py
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from selfauthor.prompts import DEFAULT_PERSONA

# .env next to the package wins over the working directory
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _load_default_persona() -> str:
    path = os.getenv("DEFAULT_PERSONA_FILE", "").strip()
    if path:
        return Path(path).read_text(encoding="utf-8")
    return os.getenv("DEFAULT_PERSONA") or DEFAULT_PERSONA


class Settings:
    """Process-wide settings read from the environment.

    Keyword overrides replace any field; unknown names raise AttributeError.
    """

    def __init__(self, default_persona: Optional[str] = None, **overrides):
        self.llm_provider: str = os.getenv("LLM_PROVIDER", "openai")
        self.openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
        self.openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o")
        self.openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.openai_timeout: float = float(os.getenv("OPENAI_TIMEOUT", "60"))
        self.temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
        self.dry_run: bool = _flag("DRY_RUN", "false")

        self.summary_min_sentences: int = max(1, int(os.getenv("SUMMARY_MIN_SENTENCES", "10")))
        self.summary_max_sentences: int = max(
            self.summary_min_sentences, int(os.getenv("SUMMARY_MAX_SENTENCES", "40"))
        )
        self.serialize_turns: bool = _flag("SERIALIZE_TURNS", "true")

        self.cors_origins: List[str] = [
            o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o.strip()
        ] or ["http://localhost:5173"]
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3000"))

        self.default_persona: str = default_persona if default_persona is not None else _load_default_persona()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"unknown setting: {key}")
            setattr(self, key, value)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
