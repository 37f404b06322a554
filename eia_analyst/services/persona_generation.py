"""
LLM-assisted persona drafting. Turns a free-text description into
{name, system_prompt, expertise_areas, avatar_emoji}. Nothing is saved here;
the caller POSTs the draft to /v1/personas if it wants to keep it.
"""

import json
import logging
import re

from ..core.errors import InvalidInputError, UpstreamError
from . import llm

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def build_persona_prompt(description: str) -> str:
    return f"""Based on this description, generate a specialized AI persona for environmental document analysis:

"{description}"

Please provide a JSON response with the following structure:
{{
  "name": "Persona Name (2-4 words)",
  "system_prompt": "Detailed system prompt defining the persona's expertise, analysis approach, and how they should review environmental documents (100-200 words)",
  "expertise_areas": ["area1", "area2", "area3", "area4"],
  "avatar_emoji": "🔬"
}}

Focus on environmental and impact assessment domains. Make the system prompt specific and actionable for document analysis."""


def parse_persona_reply(text: str) -> dict:
    """First-brace-to-last-brace span, parsed as JSON. Raises UpstreamError."""
    match = _JSON_OBJECT.search(text)
    if not match:
        raise UpstreamError("Could not extract JSON from generated response")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise UpstreamError(f"Generated persona is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise UpstreamError("Generated persona is not a JSON object")
    return data


async def generate_persona(description: str) -> dict:
    if not description or not description.strip():
        raise InvalidInputError("Description is required")

    logger.info("Generating persona for description: %s", description[:120])
    text = await llm.gemini_text(build_persona_prompt(description))
    persona = parse_persona_reply(text)
    logger.info("Generated persona %r", persona.get("name"))
    return persona
