"""
Single-page vision analysis with Gemini.

Stateless: one rasterized page (base64 PNG) per call. A reply that is not
JSON degrades to a raw-text fallback with subjectRelevance 0 instead of
failing the request.
"""

import json
import logging
import re
from typing import Any, Optional

from ..core.errors import InvalidInputError, UpstreamError
from . import llm

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = """

You must return a valid JSON object with the following structure:
{
  "subjectRelevance": <number between 0-100 indicating how relevant this page is to the main subject>,
  "summary": "<brief summary of the page content>",
  "keyPoints": ["<key point 1>", "<key point 2>"],
  "entities": ["<entity 1>", "<entity 2>"],
  "pageType": "<type of page: cover, content, index, etc.>"
}
Return ONLY valid JSON, no other text."""

DEFAULT_PAGE_PROMPT = (
    "Analyze this page from an environmental impact assessment document. Extract key "
    "information about environmental impacts, mitigation measures, and any regulatory requirements."
)

_FENCE_OPEN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$")


def strip_code_fences(text: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text)).strip()


def _clamp_relevance(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0
    if score != score:  # NaN
        return 0
    return max(0.0, min(100.0, score))


def parse_page_reply(text: str) -> dict:
    """Parse the model reply; fall back to {text, raw, subjectRelevance: 0}."""
    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        parsed = None

    if not isinstance(parsed, dict):
        return {"text": text, "raw": True, "subjectRelevance": 0}

    parsed["subjectRelevance"] = _clamp_relevance(parsed.get("subjectRelevance"))
    return parsed


def _strip_data_url(image_data: str) -> str:
    if image_data.startswith("data:") and "," in image_data:
        return image_data.split(",", 1)[1]
    return image_data


async def analyze_page(image_data: str, prompt: str, page_number: Optional[int] = None) -> dict:
    if not image_data or not prompt:
        raise InvalidInputError("Missing required fields: imageData and prompt")

    logger.info("Processing page %s with Gemini...", page_number)

    text = await llm.gemini_vision(prompt + JSON_INSTRUCTION, _strip_data_url(image_data))
    if not text:
        raise UpstreamError("No response from Gemini API")

    analysis = parse_page_reply(text)
    if analysis.get("raw"):
        logger.warning("Page %s: reply was not JSON, returning raw text", page_number)
    else:
        logger.info("Page %s analyzed (relevance=%s)", page_number, analysis["subjectRelevance"])
    return analysis
