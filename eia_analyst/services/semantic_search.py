"""
Semantic search over uploaded documents with Claude.

The model reads the first 3000 characters of each document and returns a
JSON list of hits; each hit is appended to search_results. A reply that is
not JSON becomes an empty result list with the raw text as summary.
"""

import json
import logging
import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.document import Document
from ..models.search_result import SearchResult
from . import llm

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 3000
DEFAULT_RELEVANCE = 50
SEARCH_MAX_TOKENS = 3000

PERSONA_FOCUS = {
    "fish-habitat": "Focus on fish habitat, aquatic ecosystems, spawning areas, and water quality impacts.",
    "water-quality": "Focus on water parameters, pollution, treatment methods, and monitoring requirements.",
    "caribou-biologist": "Focus on caribou migration, calving grounds, habitat impacts, and population dynamics.",
    "indigenous-knowledge": "Focus on traditional knowledge, cultural sites, community impacts, and indigenous rights.",
    "general": "Provide comprehensive environmental analysis across all relevant domains.",
}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def build_search_prompt(query: str, documents: list[Document], persona: str) -> str:
    context = "\n".join(
        f"""
Document ID: {d.id}
Title: {d.title}
Type: {d.mime_type}
Content: {(d.content or '')[:MAX_CONTENT_CHARS] or 'No content available'}
---"""
        for d in documents
    )
    focus = PERSONA_FOCUS.get(persona, PERSONA_FOCUS["general"])

    return f"""You are an AI assistant performing semantic search on environmental documents. {focus}

User Query: "{query}"

Documents to search:
{context}

Please analyze these documents and return the most relevant information to answer the user's query. For each relevant finding:

1. Identify which document(s) contain relevant information
2. Extract specific relevant passages or data
3. Explain the relevance to the query
4. Provide a confidence score (0-100)

Return your response in this JSON format:
{{
  "results": [
    {{
      "document_id": "uuid",
      "document_title": "title",
      "relevant_passages": ["passage1", "passage2"],
      "explanation": "why this is relevant",
      "confidence_score": 85
    }}
  ],
  "summary": "Overall summary of findings",
  "total_documents_searched": number
}}

Focus on accuracy and relevance. If no relevant information is found, return empty results."""


def parse_search_reply(text: str, documents_searched: int) -> dict:
    fallback = {"results": [], "summary": text, "total_documents_searched": documents_searched}

    match = _JSON_OBJECT.search(text)
    if not match:
        return fallback
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.error("Failed to parse search reply as JSON: %s", e)
        return fallback

    if not isinstance(data, dict) or not isinstance(data.get("results", []), list):
        return fallback

    data.setdefault("results", [])
    data.setdefault("summary", "")
    data.setdefault("total_documents_searched", documents_searched)
    return data


async def _record_results(db: AsyncSession, query: str, persona: str, results: list[dict], known_ids: set[str]):
    """Append one search_results row per hit. Hits for unknown documents are skipped."""
    for result in results:
        document_id = result.get("document_id") if isinstance(result, dict) else None
        if not isinstance(document_id, str) or document_id not in known_ids:
            logger.warning("Skipping search hit for unknown document %r", document_id)
            continue

        try:
            score = float(result.get("confidence_score") or DEFAULT_RELEVANCE)
        except (TypeError, ValueError):
            logger.error("Bad confidence score %r, using default", result.get("confidence_score"))
            score = DEFAULT_RELEVANCE

        passages = result.get("relevant_passages") or []
        if isinstance(passages, str):
            passages = [passages]
        db.add(SearchResult(
            query=query,
            document_id=document_id,
            relevance_score=score,
            matched_content="\n".join(str(p) for p in passages),
            persona=persona,
        ))

    await db.flush()


async def semantic_search(
    db: AsyncSession,
    query: str,
    persona: str = "general",
    document_ids: Optional[list[str]] = None,
) -> dict:
    logger.info("Performing semantic search for %r with persona %s", query, persona)

    stmt = select(Document)
    if document_ids:
        stmt = stmt.where(Document.id.in_(document_ids))
    documents = list((await db.execute(stmt)).scalars().all())

    if not documents:
        return {"results": [], "message": "No documents found to search"}

    text = await llm.claude_message(
        build_search_prompt(query, documents, persona), max_tokens=SEARCH_MAX_TOKENS
    )
    data = parse_search_reply(text, len(documents))

    await _record_results(db, query, persona, data["results"], {d.id for d in documents})
    logger.info("Search completed. Found %d relevant results.", len(data["results"]))
    return data
