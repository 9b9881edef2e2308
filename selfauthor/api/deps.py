# selfauthor/api/deps.py
from __future__ import annotations

from fastapi import Depends

from selfauthor import providers
from selfauthor.config import Settings, get_settings
from selfauthor.turns import Generator, TurnRunner


def get_generator(settings: Settings = Depends(get_settings)) -> Generator:
    """
    FastAPI dependency: the backend call used for both reply and summary.
    Tests override this with a scripted fake.
    """
    async def _generate(prompt: str):
        return await providers.generate(prompt, settings)
    return _generate


def get_turn_runner(
    settings: Settings = Depends(get_settings),
    generate: Generator = Depends(get_generator),
) -> TurnRunner:
    return TurnRunner(
        generate,
        default_persona=settings.default_persona,
        summary_min_sentences=settings.summary_min_sentences,
        summary_max_sentences=settings.summary_max_sentences,
        serialize=settings.serialize_turns,
    )
