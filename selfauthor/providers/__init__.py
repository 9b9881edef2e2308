from typing import List, Optional

from selfauthor.config import Settings, get_settings


class GenerationError(RuntimeError):
    """The generation backend was unreachable, rejected the request, or answered garbage."""


async def generate(prompt: str, settings: Optional[Settings] = None) -> List[str]:
    """
    Ordered candidate texts for `prompt` (possibly empty).
    Raises GenerationError on transport, auth, or response-shape failures.
    """
    settings = settings or get_settings()
    if settings.dry_run:
        return [f"[DRY_RUN] {settings.openai_model} → {prompt[:200]}"]
    provider = settings.llm_provider
    if provider == "openai":
        from .openai_provider import openai_chat_candidates
        return await openai_chat_candidates(
            prompt,
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.openai_timeout,
            temperature=settings.temperature,
        )
    raise GenerationError(f"Unsupported provider: {provider}")


def first_candidate(candidates: List[str], fallback: str) -> str:
    """Only the first candidate is ever used, verbatim; no candidates falls back."""
    if not candidates:
        return fallback
    return candidates[0] or ""
