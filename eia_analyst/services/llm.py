"""
LLM client for the three upstream providers.

  - Gemini generateContent  (chat, page vision, persona generation)
  - Anthropic Messages      (document analysis, semantic search)
  - Perplexity chat         (online search, see web_search.py)

Features:
  - Reusable client (connection pooling)
  - Optional retry with exponential backoff + jitter (LLM_MAX_RETRIES, default 0)
  - Structured logging of latency and token usage
  - httpx errors surfaced as UpstreamError
"""

import asyncio
import logging
import random
import time
from typing import Any, Optional

import httpx

from ..core.config import get_settings
from ..core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

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


# ── Retry logic ──────────────────────────────────────────────────────

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
BASE_DELAY = 1.0
MAX_DELAY = 16.0


def _backoff(attempt: int) -> float:
    return min(MAX_DELAY, BASE_DELAY * (2 ** attempt) + random.uniform(0, 1))


def _retry_delay(retry_after: Optional[str], attempt: int) -> float:
    """Seconds from a numeric Retry-After header, else exponential backoff."""
    try:
        return min(MAX_DELAY, max(0.0, float(retry_after)))
    except (TypeError, ValueError):
        return _backoff(attempt)


async def _post(provider: str, url: str, **kwargs) -> dict:
    """
    POST to an LLM API and return the JSON body.

    Retries 429/5xx/timeouts only when LLM_MAX_RETRIES > 0. Any other
    failure, or running out of attempts, raises UpstreamError.
    """
    max_retries = max(0, get_settings().llm_max_retries)
    client = _get_client()

    for attempt in range(max_retries + 1):
        last_try = attempt == max_retries
        try:
            resp = await client.post(url, **kwargs)
        except httpx.TimeoutException as e:
            if last_try:
                raise UpstreamError(f"{provider} API timed out") from e
            delay = _backoff(attempt)
            logger.warning(
                "%s timeout (attempt %d/%d) — retrying in %.1fs",
                provider, attempt + 1, max_retries + 1, delay,
            )
            await asyncio.sleep(delay)
            continue
        except httpx.HTTPError as e:
            raise UpstreamError(f"{provider} API request failed: {e}") from e

        if resp.status_code in RETRYABLE_STATUS and not last_try:
            delay = _retry_delay(resp.headers.get("retry-after"), attempt)
            logger.warning(
                "%s %d (attempt %d/%d) — retrying in %.1fs",
                provider, resp.status_code, attempt + 1, max_retries + 1, delay,
            )
            await asyncio.sleep(delay)
            continue

        if resp.status_code >= 400:
            logger.error("%s API error %d: %s", provider, resp.status_code, resp.text[:500])
            raise UpstreamError(f"{provider} API error: {resp.status_code} {resp.reason_phrase}")

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"{provider} API returned invalid JSON") from e

    raise UpstreamError(f"{provider} request failed after retries")  # pragma: no cover


# ── Gemini ───────────────────────────────────────────────────────────

async def gemini_generate(parts: list[dict], model: Optional[str] = None) -> str:
    """
    One generateContent call. Returns the first candidate's text, or "" if
    the reply carries no text.
    """
    settings = get_settings()
    if not settings.gemini_api_key:
        raise ConfigurationError("Gemini API key not configured")

    model = model or settings.gemini_chat_model
    url = f"{settings.gemini_base_url.rstrip('/')}/models/{model}:generateContent"

    start = time.monotonic()
    data = await _post(
        "Gemini",
        url,
        params={"key": settings.gemini_api_key},
        json={"contents": [{"parts": parts}]},
        headers={"Content-Type": "application/json"},
    )

    usage = data.get("usageMetadata", {})
    logger.info(
        "Gemini: %dms | in=%d out=%d tokens | model=%s",
        int((time.monotonic() - start) * 1000),
        usage.get("promptTokenCount", 0),
        usage.get("candidatesTokenCount", 0),
        model,
    )
    return _gemini_text(data)


def _gemini_text(data: dict) -> str:
    candidates = data.get("candidates") or [{}]
    content_parts = (candidates[0].get("content") or {}).get("parts") or [{}]
    return content_parts[0].get("text") or ""


async def gemini_text(prompt: str, model: Optional[str] = None) -> str:
    """Send a text prompt, get a string back."""
    return await gemini_generate([{"text": prompt}], model=model)


async def gemini_vision(
    prompt: str,
    image_b64: str,
    mime_type: str = "image/png",
    model: Optional[str] = None,
) -> str:
    """Prompt plus one inline image (base64, no data: prefix)."""
    settings = get_settings()
    parts = [
        {"text": prompt},
        {"inlineData": {"mimeType": mime_type, "data": image_b64}},
    ]
    return await gemini_generate(parts, model=model or settings.gemini_vision_model)


# ── Anthropic ────────────────────────────────────────────────────────

async def claude_message(
    prompt: str,
    max_tokens: Optional[int] = None,
    model: Optional[str] = None,
) -> str:
    """Single-turn Messages call. Returns the first content block's text."""
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise ConfigurationError("Anthropic API key not configured")

    payload: dict[str, Any] = {
        "model": model or settings.anthropic_model,
        "max_tokens": max_tokens or settings.anthropic_max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }

    start = time.monotonic()
    data = await _post(
        "Anthropic",
        f"{settings.anthropic_base_url.rstrip('/')}/messages",
        json=payload,
        headers={
            "x-api-key": settings.anthropic_api_key,
            "anthropic-version": settings.anthropic_version,
            "Content-Type": "application/json",
        },
    )

    usage = data.get("usage", {})
    logger.info(
        "Claude: %dms | in=%d out=%d tokens | model=%s",
        int((time.monotonic() - start) * 1000),
        usage.get("input_tokens", 0),
        usage.get("output_tokens", 0),
        payload["model"],
    )

    blocks = data.get("content") or []
    if not blocks or "text" not in blocks[0]:
        raise UpstreamError("Anthropic API returned no text content")
    return blocks[0]["text"]


# ── Perplexity ───────────────────────────────────────────────────────

async def perplexity_chat(
    messages: list[dict],
    temperature: float = 0.2,
    max_tokens: int = 1000,
) -> str:
    """OpenAI-style chat completion against Perplexity's online models."""
    settings = get_settings()
    if not settings.perplexity_api_key:
        raise ConfigurationError("Perplexity API key not configured")

    payload = {
        "model": settings.perplexity_model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "return_related_questions": False,
    }

    start = time.monotonic()
    data = await _post(
        "Perplexity",
        f"{settings.perplexity_base_url.rstrip('/')}/chat/completions",
        json=payload,
        headers={
            "Authorization": f"Bearer {settings.perplexity_api_key}",
            "Content-Type": "application/json",
        },
    )
    logger.info(
        "Perplexity: %dms | model=%s",
        int((time.monotonic() - start) * 1000),
        payload["model"],
    )

    choices = data.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or ""
