"""
AI analyst chat — answers one question with document or online context.

Context selection is a single-keyword heuristic: the first word of the
message longer than 3 characters, matched case-insensitively against the
content of up to 10 documents. No ranking, no deduplication.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.document import Document
from . import llm, web_search
from .personas import GENERAL_CHAT_PROMPT, get_persona, system_prompt_for

logger = logging.getLogger(__name__)

MAX_DOCUMENTS = 10
MAX_CONTEXT_CHARS = 2000
MAX_HISTORY_MESSAGES = 5
MIN_KEYWORD_LENGTH = 4

NO_RESPONSE_TEXT = "I apologize, but I could not generate a response at this time."


@dataclass
class ChatReply:
    response: str
    sources: list[str] = field(default_factory=list)
    is_online_search: bool = False


def extract_keyword(message: str) -> Optional[str]:
    """First word longer than 3 characters, lower-cased. None if there is none."""
    for word in message.lower().split():
        if len(word) >= MIN_KEYWORD_LENGTH:
            return word
    return None


def match_documents(documents: list[Document], keyword: Optional[str]) -> list[Document]:
    if not keyword:
        return []
    return [d for d in documents if d.content and keyword in d.content.lower()]


def format_document_context(documents: list[Document]) -> str:
    return "\n\n".join(
        f"Document: {d.title}\nContent: {(d.content or '')[:MAX_CONTEXT_CHARS]}..."
        for d in documents
    )


def build_chat_prompt(
    system_prompt: str,
    message: str,
    history: list[dict],
    document_context: str = "",
    online_context: str = "",
) -> str:
    context = ""
    if document_context:
        context = f"\n\nRELEVANT UPLOADED DOCUMENTS:\n{document_context}"
    elif online_context:
        context = f"\n\nONLINE RESEARCH CONTEXT:\n{online_context}"

    conversation = ""
    if history:
        lines = "\n".join(f"{m.get('role', 'user')}: {m.get('content', '')}" for m in history)
        conversation = f"\n\nCONVERSATION HISTORY:\n{lines}"

    return f"""{system_prompt}

{context}{conversation}

USER QUESTION: {message}

Please provide a helpful, accurate response based on the available context. If using information from uploaded documents, mention that the information comes from the user's documents. If using online research, you can reference that as well. Be professional and informative."""


async def _load_candidate_documents(db: AsyncSession) -> list[Document]:
    result = await db.execute(
        select(Document)
        .where(Document.content.is_not(None))
        .order_by(Document.created_at.desc())
        .limit(MAX_DOCUMENTS)
    )
    return list(result.scalars().all())


async def answer_question(
    db: AsyncSession,
    message: str,
    persona_id: Optional[str] = None,
    conversation_history: Optional[list[dict]] = None,
) -> ChatReply:
    """Select context, build one prompt, make one Gemini call."""
    history = (conversation_history or [])[-MAX_HISTORY_MESSAGES:]
    persona = await get_persona(db, persona_id)

    documents = await _load_candidate_documents(db)
    keyword = extract_keyword(message)
    relevant = match_documents(documents, keyword)

    document_context = ""
    online_context = ""
    sources: list[str] = []
    is_online = False

    if relevant:
        document_context = format_document_context(relevant)
        sources = [d.title for d in relevant]
        logger.info("Chat: %d documents matched keyword %r", len(relevant), keyword)
    else:
        logger.info("Chat: no document matched keyword %r", keyword)
        answer = await web_search.research(message)
        if answer:
            online_context = answer
            is_online = True

    prompt = build_chat_prompt(
        system_prompt_for(persona, GENERAL_CHAT_PROMPT),
        message,
        history,
        document_context=document_context,
        online_context=online_context,
    )
    text = await llm.gemini_text(prompt)

    return ChatReply(
        response=text or NO_RESPONSE_TEXT,
        sources=sources,
        is_online_search=is_online,
    )
