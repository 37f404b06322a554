"""
Semantic search API.

POST /v1/semantic-search — Claude reads the documents and returns ranked passages
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db
from ..services.semantic_search import semantic_search

logger = logging.getLogger(__name__)

search_router = APIRouter(tags=["search"])


class SemanticSearchRequest(BaseModel):
    query: str
    persona: str = "general"
    document_ids: Optional[list[str]] = None


@search_router.post("/semantic-search")
async def semantic_search_endpoint(
    request: SemanticSearchRequest,
    db: AsyncSession = Depends(get_db),
):
    data = await semantic_search(
        db, request.query, persona=request.persona, document_ids=request.document_ids
    )
    return {"success": True, **data, "query": request.query, "persona": request.persona}
