"""
Document ingestion: validate → store raw bytes → extract text → insert row.

Validation runs before any storage or database write. The row is committed
with upload_status "completed" whether or not extraction produced real text.
Scheduling the follow-up analysis is the caller's job (see api/documents.py).
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.errors import InvalidInputError
from ..core.storage import StorageBackend, stored_name
from ..models.document import Document
from . import realtime
from .extraction import ALLOWED_MIME_TYPES, detect_mime_type, extract_text

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Document"


def validate_upload(file_size: int, mime_type: str) -> None:
    """Raise InvalidInputError for an empty, oversized, or unsupported file."""
    max_bytes = get_settings().max_upload_bytes

    if mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidInputError(
            f"Unsupported file type: {mime_type}. Supported formats: PDF, DOC, DOCX, HTML, TXT"
        )
    if file_size > max_bytes:
        raise InvalidInputError(
            f"File size exceeds {max_bytes // (1024 * 1024)}MB limit"
        )
    if file_size == 0:
        raise InvalidInputError("Empty file")


async def ingest_upload(
    db: AsyncSession,
    storage: StorageBackend,
    file_bytes: bytes,
    filename: str,
    content_type: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> Document:
    mime_type = detect_mime_type(content_type, filename)
    logger.info("Processing upload: %s, type: %s, size: %d", filename, mime_type, len(file_bytes))

    validate_upload(len(file_bytes), mime_type)

    name = stored_name(filename)
    storage_path = await storage.upload(file_bytes, name, folder="documents")

    text, metadata = await extract_text(file_bytes, mime_type, filename)
    logger.info("Extracted %d chars from %s (%s)", len(text), filename, metadata["extractor"])

    document = Document(
        title=(title or "").strip() or DEFAULT_TITLE,
        description=description or "",
        filename=name,
        original_filename=Path(filename).name,
        mime_type=mime_type,
        file_size=len(file_bytes),
        content=text,
        storage_path=storage_path,
        upload_status="completed",
    )
    db.add(document)
    await db.commit()
    await realtime.document_uploaded(document.id, document.title)

    logger.info("Document uploaded successfully with ID: %s", document.id)
    return document
