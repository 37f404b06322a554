"""
Analysis API.

POST /v1/analyze-document   — Run one LLM analysis of a document
GET  /v1/analyses           — Recent analyses (optionally for one document)
GET  /v1/analyses/{id}      — One analysis
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db
from ..models.analysis import Analysis
from ..services.analysis import DEFAULT_ANALYSIS_TYPE, trigger_analysis
from .schemas import AnalysisOut

logger = logging.getLogger(__name__)

analysis_router = APIRouter(tags=["analysis"])


class AnalyzeRequest(BaseModel):
    document_id: str
    analysis_type: Optional[str] = DEFAULT_ANALYSIS_TYPE
    persona_id: Optional[str] = None
    custom_instructions: Optional[str] = None


class AnalyzeResponse(BaseModel):
    success: bool = True
    analysis_id: str
    message: str


@analysis_router.post("/analyze-document", response_model=AnalyzeResponse)
async def analyze_document(
    request: AnalyzeRequest,
    db: AsyncSession = Depends(get_db),
):
    """Analyze a document with Claude and store the result."""
    analysis = await trigger_analysis(
        db,
        document_id=request.document_id,
        persona_id=request.persona_id,
        custom_instructions=request.custom_instructions,
        analysis_type=request.analysis_type,
    )
    return AnalyzeResponse(
        analysis_id=analysis.id,
        message=f"Analysis completed for document {request.document_id}",
    )


@analysis_router.get("/analyses", response_model=list[AnalysisOut])
async def list_analyses(
    db: AsyncSession = Depends(get_db),
    document_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
):
    """Most recent analyses first."""
    stmt = select(Analysis).order_by(Analysis.created_at.desc()).limit(limit).offset(offset)
    if document_id:
        stmt = stmt.where(Analysis.document_id == document_id)

    result = await db.execute(stmt)
    return [AnalysisOut.model_validate(a) for a in result.scalars().all()]


@analysis_router.get("/analyses/{analysis_id}", response_model=AnalysisOut)
async def get_analysis(
    analysis_id: str,
    db: AsyncSession = Depends(get_db),
):
    analysis = await db.get(Analysis, analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return AnalysisOut.model_validate(analysis)
