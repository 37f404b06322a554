"""
Document endpoints.

POST /v1/upload-document  — Multipart upload (file, title?, description?)
GET  /v1/documents        — All documents, newest first
GET  /v1/documents/{id}   — One document with its extracted content
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.dependencies import get_db, get_storage_dep
from ..core.errors import InvalidInputError
from ..core.flags import get_flags
from ..core.storage import StorageBackend
from ..models.document import Document
from ..services.analysis import DEFAULT_ANALYSIS_TYPE, run_analysis_job
from ..services.upload import ingest_upload
from .schemas import DocumentOut

logger = logging.getLogger(__name__)

documents_router = APIRouter(tags=["documents"])


class UploadResponse(BaseModel):
    success: bool = True
    document: DocumentOut
    message: str


@documents_router.post("/upload-document", response_model=UploadResponse)
async def upload_document(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage_dep),
):
    """
    Store the raw file, extract its text, and insert the document row.

    When FF_AUTO_ANALYZE is on an "environmental" analysis is queued after
    the response. Its outcome never changes this response.
    """
    filename = file.filename or "document"

    # Reject oversized uploads before reading them into memory
    max_bytes = get_settings().max_upload_bytes
    if file.size is not None and file.size > max_bytes:
        raise InvalidInputError(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")

    file_bytes = await file.read()

    document = await ingest_upload(
        db,
        storage,
        file_bytes,
        filename,
        content_type=file.content_type,
        title=title,
        description=description,
    )

    if get_flags().auto_analyze:
        background_tasks.add_task(run_analysis_job, document.id, DEFAULT_ANALYSIS_TYPE)
        logger.info("Auto-analysis queued for document %s", document.id)

    return UploadResponse(
        document=DocumentOut.model_validate(document),
        message="Document uploaded successfully and analysis started",
    )


@documents_router.get("/documents", response_model=list[DocumentOut])
async def list_documents(
    db: AsyncSession = Depends(get_db),
    limit: int = 100,
    offset: int = 0,
):
    """List documents, newest first."""
    result = await db.execute(
        select(Document)
        .order_by(Document.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return [DocumentOut.model_validate(d) for d in result.scalars().all()]


@documents_router.get("/documents/{document_id}", response_model=DocumentOut)
async def get_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
):
    document = await db.get(Document, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return DocumentOut.model_validate(document)
