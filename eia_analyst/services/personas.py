"""
Persona lookup and the built-in fallback prompts.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.persona import Persona

logger = logging.getLogger(__name__)

# Used when a request names no persona, or one that does not exist.
GENERAL_ANALYST_PROMPT = (
    "You are a general environmental analyst. Provide comprehensive analysis covering "
    "all environmental aspects including ecological, social, and regulatory considerations."
)

GENERAL_CHAT_PROMPT = (
    "You are an Environmental Analyst with expertise in impact assessments, "
    "environmental regulations, and sustainability practices."
)


async def get_persona(db: AsyncSession, persona_id: Optional[str]) -> Optional[Persona]:
    """Load a persona by id. None for a missing id or unknown persona."""
    if not persona_id:
        return None

    result = await db.execute(select(Persona).where(Persona.id == persona_id))
    persona = result.scalar_one_or_none()
    if persona is None:
        logger.warning("Persona %s not found, using general prompt", persona_id)
    return persona


def system_prompt_for(persona: Optional[Persona], fallback: str) -> str:
    if persona and persona.system_prompt and persona.system_prompt.strip():
        return persona.system_prompt
    return fallback
