"""
Page analysis API.

POST /v1/analyze-page                      — Analyze one rasterized page (base64 PNG)
POST /v1/documents/{id}/pages/analyze      — Rasterize + analyze pages of a stored PDF
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, get_storage_dep
from ..core.storage import StorageBackend
from ..services.page_analysis import analyze_page
from ..services.pdf_pages import analyze_document_pages

logger = logging.getLogger(__name__)

pages_router = APIRouter(tags=["pages"])


class PageAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_data: str = Field(default="", alias="imageData")
    prompt: str = ""
    page_number: Optional[int] = Field(default=None, alias="pageNumber")


class PageAnalysisResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis: dict[str, Any]
    page_number: Optional[int] = Field(default=None, alias="pageNumber")


@pages_router.post("/analyze-page", response_model=PageAnalysisResponse)
async def analyze_page_endpoint(request: PageAnalysisRequest):
    """
    Analyze one page image with Gemini.

    Always 200 once Gemini answers: a non-JSON reply comes back as
    {"text": ..., "raw": true, "subjectRelevance": 0}.
    """
    analysis = await analyze_page(request.image_data, request.prompt, request.page_number)
    return PageAnalysisResponse(analysis=analysis, page_number=request.page_number)


class DocumentPagesRequest(BaseModel):
    pages: list[int] = []
    prompt: Optional[str] = None


@pages_router.post("/documents/{document_id}/pages/analyze")
async def analyze_stored_pages(
    document_id: str,
    request: DocumentPagesRequest,
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage_dep),
):
    """Serial page-by-page analysis of a stored PDF. Slow: ~1s pause per page."""
    result = await analyze_document_pages(
        db, storage, document_id, pages=request.pages, prompt=request.prompt
    )
    return {"success": True, **result}
