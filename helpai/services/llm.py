"""
Chat-completion client (Together AI, OpenAI-compatible API).

  - Reusable client (connection pooling)
  - One attempt per turn: no retry, no backoff, no fallback model
  - Upstream status mapped to invalid key / rate limited / generic failure
  - Structured logging of latency and token usage
"""

import logging
import time
from typing import Any, Optional

import httpx

from ..core.config import Settings
from ..core.exceptions import ProviderError, provider_error_for_status

logger = logging.getLogger(__name__)

PROVIDER = "Together AI"

# ── Reusable client (connection pool) ────────────────────────────────

_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10, read=120, write=30, pool=10),
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
        )
    return _client


async def close_client():
    """Close the shared HTTP client. Call on app shutdown."""
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


# ── Completion ───────────────────────────────────────────────────────

async def complete(
    messages: list[dict],
    *,
    api_key: str,
    settings: Settings,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """
    Send `messages` to the completion endpoint and return the reply text.

    Raises ProviderError (or a subclass) on a non-2xx status, a transport
    failure, or a response without choices[0].message.content.
    """
    payload: dict[str, Any] = {
        "model": settings.chat_model,
        "messages": messages,
        "temperature": temperature if temperature is not None else settings.chat_temperature,
        "max_tokens": max_tokens or settings.chat_max_tokens,
    }
    url = f"{settings.together_base_url.rstrip('/')}/chat/completions"
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    start = time.monotonic()
    try:
        resp = await _get_client().post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error("LLM request failed after %.1fs: %s", time.monotonic() - start, e)
        raise ProviderError(PROVIDER, "Failed to get response from AI model")

    if resp.status_code >= 400:
        logger.error("LLM API error %d: %s", resp.status_code, resp.text[:500])
        raise provider_error_for_status(PROVIDER, resp.status_code, "get response from AI model")

    try:
        data = resp.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error("Invalid response format from LLM: %s", resp.text[:500])
        raise ProviderError(PROVIDER, "Invalid response format from AI model", resp.status_code)

    if not content:
        logger.error("LLM returned an empty answer: %s", resp.text[:500])
        raise ProviderError(PROVIDER, "Invalid response format from AI model", resp.status_code)

    usage = data.get("usage") or {}
    logger.info(
        "LLM chat: %dms | in=%d out=%d tokens | model=%s",
        int((time.monotonic() - start) * 1000),
        usage.get("prompt_tokens", 0),
        usage.get("completion_tokens", 0),
        payload["model"],
    )
    return content


# ── Token estimation ─────────────────────────────────────────────────

def estimate_tokens(text: str) -> int:
    """
    Estimate token count without tiktoken dependency.
    Rule of thumb: ~4 chars per token for English.
    """
    return max(1, len(text) // 4)


def estimate_messages_tokens(messages: list[dict]) -> int:
    """Estimate total tokens in a message list."""
    total = 0
    for msg in messages:
        total += 4  # message overhead
        total += estimate_tokens(msg.get("content") or "")
    total += 2  # priming
    return total
