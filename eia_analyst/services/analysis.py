"""
Document analysis — one Claude call per analysis row.

Lifecycle: the row is inserted as "processing" and committed before the LLM
call, then updated once to "completed". Any failure in between leaves the
row in "processing"; there is no failure state and no retry.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import session_scope
from ..core.errors import NotFoundError
from ..models.analysis import Analysis
from ..models.base import utcnow
from ..models.document import Document
from ..models.persona import Persona
from . import llm, realtime
from .personas import GENERAL_ANALYST_PROMPT, get_persona, system_prompt_for

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_TYPE = "environmental"

# Stored on every completed analysis. Not derived from the LLM reply.
PLACEHOLDER_KEY_FINDINGS = [
    "Environmental impacts identified and assessed",
    "Mitigation measures reviewed for adequacy",
    "Regulatory compliance considerations noted",
]
PLACEHOLDER_CONFIDENCE = 0.85


def build_analysis_prompt(
    document: Document,
    persona: Optional[Persona] = None,
    custom_instructions: Optional[str] = None,
) -> str:
    """Fixed analysis prompt around the document title and content."""
    persona_prompt = system_prompt_for(persona, GENERAL_ANALYST_PROMPT)
    instructions = ""
    if custom_instructions and custom_instructions.strip():
        instructions = f"\nAdditional instructions: {custom_instructions.strip()}\n"

    return f"""{persona_prompt}

Please analyze this environmental document and provide a detailed analysis focusing on your area of expertise:

Document Title: {document.title}
Document Type: {document.mime_type or "unknown"}
Content: {document.content or "No extracted text available"}
{instructions}
Please provide:
1. Key findings relevant to your specialty
2. Potential impacts and concerns
3. Recommendations for mitigation
4. Compliance considerations
5. Areas requiring further investigation

Focus on actionable insights and specific recommendations."""


async def trigger_analysis(
    db: AsyncSession,
    document_id: str,
    persona_id: Optional[str] = None,
    custom_instructions: Optional[str] = None,
    analysis_type: Optional[str] = None,
) -> Analysis:
    """
    Analyze one document and persist the result.

    Raises NotFoundError (no row written) if the document does not exist.
    Errors after the row is created propagate and leave it in "processing".
    """
    document = await db.get(Document, document_id)
    if document is None:
        raise NotFoundError(f"Document not found: {document_id}")

    persona = await get_persona(db, persona_id)

    analysis = Analysis(
        document_id=document.id,
        persona_id=persona.id if persona else None,
        title=document.title,
        analysis_type=analysis_type or DEFAULT_ANALYSIS_TYPE,
        custom_instructions=custom_instructions,
        status="processing",
        key_findings=[],
    )
    db.add(analysis)
    await db.commit()
    await realtime.analysis_status(analysis.id, document.id, "processing")

    logger.info(
        "Starting analysis %s for document %s (persona=%s, type=%s)",
        analysis.id, document.id, persona.name if persona else "general", analysis.analysis_type,
    )

    prompt = build_analysis_prompt(document, persona, custom_instructions)
    content = await llm.claude_message(prompt)

    analysis.analysis_content = content
    analysis.key_findings = list(PLACEHOLDER_KEY_FINDINGS)
    analysis.confidence_score = PLACEHOLDER_CONFIDENCE
    analysis.status = "completed"
    analysis.completed_at = utcnow()
    await db.commit()
    await realtime.analysis_status(analysis.id, document.id, "completed")

    logger.info("Analysis %s completed (%d chars)", analysis.id, len(content))
    return analysis


async def run_analysis_job(document_id: str, analysis_type: str = DEFAULT_ANALYSIS_TYPE) -> None:
    """
    Background entry point used after upload. Opens its own session.
    Failures are logged and published, never raised to the caller.
    """
    try:
        async with session_scope() as db:
            analysis = await trigger_analysis(db, document_id, analysis_type=analysis_type)
        logger.info("Auto-analysis %s finished for document %s", analysis.id, document_id)
    except Exception as e:
        logger.error("Auto-analysis failed for document %s: %s", document_id, e)
        await realtime.analysis_trigger_failed(document_id, str(e))
