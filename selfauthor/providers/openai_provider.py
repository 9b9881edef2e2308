# providers/openai_provider.py
from typing import Any, Dict, List, Optional

import httpx

from . import GenerationError

DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _client(api_key: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    if not api_key:
        raise GenerationError("OPENAI_API_KEY not set")
    return httpx.AsyncClient(
        timeout=timeout,
        transport=transport,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
    )


def _error_message(r: httpx.Response) -> str:
    try:
        err = r.json()
        return err.get("error", {}).get("message", r.text)
    except Exception:
        return r.text


def _candidates(data: Any) -> List[str]:
    if not isinstance(data, dict) or not isinstance(data.get("choices", []), list):
        raise GenerationError("malformed response: missing choices")
    outs: List[str] = []
    for choice in data.get("choices", []):
        if not isinstance(choice, dict):
            raise GenerationError("malformed response: choice is not an object")
        message = choice.get("message", {}) or {}
        if not isinstance(message, dict):
            raise GenerationError("malformed response: message is not an object")
        text = message.get("content", "")
        outs.append(text if isinstance(text, str) else "")
    return outs


# -----------------------------
# Chat completions
# -----------------------------
async def openai_chat_candidates(
    prompt: str,
    api_key: str,
    model: str = DEFAULT_MODEL,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = 60,
    temperature: float = 0.7,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[str]:
    """
    Sends `prompt` as a single system message and returns the choices' contents
    in order. An empty choices list is a valid (empty) answer, not an error.
    """
    url = base_url.rstrip("/") + "/chat/completions"
    body: Dict[str, Any] = {
        "model": model or DEFAULT_MODEL,
        "messages": [{"role": "system", "content": str(prompt)}],
        "temperature": temperature,
    }

    try:
        async with _client(api_key, timeout, transport) as client:
            r = await client.post(url, json=body)
    except httpx.HTTPError as e:
        raise GenerationError(f"OpenAI transport error: {type(e).__name__}: {e}") from e

    if r.status_code >= 400:
        # surface OpenAI's error text rather than a generic status
        raise GenerationError(f"OpenAI {r.status_code}: {_error_message(r)}")

    try:
        data = r.json()
    except ValueError as e:
        raise GenerationError("malformed response: body is not JSON") from e
    return _candidates(data)
