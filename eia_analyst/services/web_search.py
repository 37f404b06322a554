"""
Online research via Perplexity. Used by chat when no uploaded document matches.
Direct HTTP call through services.llm. Never raises: returns None when the
search is off, unconfigured, or fails.
"""

import logging
from typing import Optional

from ..core.config import get_settings
from ..core.errors import ServiceError
from ..core.flags import get_flags
from . import llm

logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = (
    "You are an environmental research assistant. Provide factual, current information "
    "about environmental topics, regulations, and best practices. Focus on authoritative sources."
)


def online_search_available() -> bool:
    return get_flags().use_online_search and bool(get_settings().perplexity_api_key)


async def research(question: str) -> Optional[str]:
    """One Perplexity query. Returns the answer text, or None."""
    if not online_search_available():
        return None

    try:
        answer = await llm.perplexity_chat(
            [
                {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": f"Research this environmental question: {question}"},
            ],
            temperature=0.2,
            max_tokens=1000,
        )
    except ServiceError as e:
        logger.error("Online search failed: %s", e)
        return None

    if not answer:
        logger.warning("Online search returned no content")
        return None

    logger.info("Online search completed (%d chars)", len(answer))
    return answer
