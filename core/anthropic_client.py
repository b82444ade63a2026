# core/anthropic_client.py
import re
from typing import Dict, Any
import httpx
from config.settings import settings
import logging
from util.timing import timed

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def anthropic_headers(api_key: str) -> Dict[str, str]:
    return {
        "x-api-key": api_key,
        "anthropic-version": settings.ANTHROPIC_VERSION,
        "content-type": "application/json",
    }


async def _post_json(
    url: str, headers: Dict[str, str], payload: Dict[str, Any], timeout: float = 60.0
) -> Dict[str, Any]:
    """
    Make a JSON POST to `url`. Raises for non-2xx. Returns parsed JSON dict or {} on parse failure.
    """
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.post(url, headers=headers, json=payload)
        r.raise_for_status()
        try:
            return r.json()
        except ValueError:
            return {}


def first_text_block(data: Dict[str, Any]) -> str:
    """Text of the first `text` content block of a Messages API response."""
    content = data.get("content") or []
    if content and isinstance(content, list):
        node = content[0]
        if isinstance(node, dict) and node.get("type") == "text":
            return node.get("text") or ""
    return ""


def strip_code_fences(raw: str) -> str:
    """Models wrap JSON in ``` fences despite instructions; unwrap it."""
    text = (raw or "").strip()
    m = _FENCE.search(text)
    if m:
        return m.group(1).strip()
    return text


async def complete(
    *,
    api_key: str,
    model: str,
    api_url: str,
    system: str,
    user: str,
    max_tokens: int,
    timeout: float = 45.0,
    op: str = "ai.complete",
) -> str:
    """
    One deterministic (temperature 0) Messages call; returns the reply text.
    """
    payload = {
        "model": model,
        "max_tokens": max_tokens,
        "system": system,
        "messages": [{"role": "user", "content": user}],
        "temperature": 0.0,
    }
    with timed(logger, op, model=model):
        data = await _post_json(api_url, anthropic_headers(api_key), payload, timeout=timeout)
    return first_text_block(data)


async def probe_key(*, api_key: str, model: str, api_url: str) -> int:
    """
    Smallest possible Messages call (one output token). Returns the HTTP status;
    transport failures raise httpx.RequestError.
    """
    payload = {
        "model": model,
        "max_tokens": 1,
        "messages": [{"role": "user", "content": "Ping"}],
    }
    async with httpx.AsyncClient(timeout=httpx.Timeout(10.0, connect=5.0)) as client:
        res = await client.post(api_url, headers=anthropic_headers(api_key), json=payload)
    return res.status_code
