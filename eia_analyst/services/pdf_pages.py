"""
Server-side page pipeline for stored PDFs.

Rasterization renders a few pages at a time in worker threads
(RASTERIZE_BATCH_SIZE, default 3). Page analysis is strictly serial with a
fixed pause between Gemini calls (PAGE_ANALYSIS_DELAY_SECONDS, default 1s).
That pause is the only rate limiting.
"""

import asyncio
import base64
import logging
from io import BytesIO
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.errors import InvalidInputError, NotFoundError, ServiceError
from ..core.storage import StorageBackend
from ..models.document import Document
from .extraction import PDF
from .page_analysis import DEFAULT_PAGE_PROMPT, analyze_page

logger = logging.getLogger(__name__)


def count_pages(pdf_bytes: bytes) -> int:
    import pdfplumber

    with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
        return len(pdf.pages)


def render_page_png(pdf_bytes: bytes, page_number: int, resolution: int) -> str:
    """Render one page (1-based) to a base64 PNG. Blocking."""
    import pdfplumber

    with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
        page = pdf.pages[page_number - 1]
        image = page.to_image(resolution=resolution)
        buf = BytesIO()
        image.original.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


async def rasterize_pages(
    pdf_bytes: bytes,
    page_numbers: Iterable[int],
    resolution: Optional[int] = None,
    batch_size: Optional[int] = None,
) -> dict[int, str]:
    """
    Render pages in batches. Returns {page_number: base64 png}.
    Each page is rendered once per call even if requested twice.
    """
    settings = get_settings()
    resolution = resolution or settings.rasterize_resolution
    batch_size = max(1, batch_size or settings.rasterize_batch_size)

    rendered: dict[int, str] = {}
    pending = sorted(set(page_numbers))

    for i in range(0, len(pending), batch_size):
        batch = pending[i:i + batch_size]
        images = await asyncio.gather(
            *(asyncio.to_thread(render_page_png, pdf_bytes, n, resolution) for n in batch)
        )
        rendered.update(zip(batch, images))
        logger.debug("Rasterized pages %s", batch)

    return rendered


async def analyze_document_pages(
    db: AsyncSession,
    storage: StorageBackend,
    document_id: str,
    pages: Optional[list[int]] = None,
    prompt: Optional[str] = None,
    delay_seconds: Optional[float] = None,
) -> dict:
    """
    Rasterize and analyze selected pages of a stored PDF.

    pages: 1-based page numbers; empty or None means every page. Numbers
    outside the document are dropped. A page whose analysis fails is
    reported with an "error" entry and the loop moves on.
    """
    document = await db.get(Document, document_id)
    if document is None:
        raise NotFoundError(f"Document not found: {document_id}")
    if document.mime_type != PDF:
        raise InvalidInputError(f"Page analysis needs a PDF, got {document.mime_type}")
    if not document.storage_path:
        raise NotFoundError(f"No stored file for document {document_id}")

    pdf_bytes = await storage.download(document.storage_path)
    if pdf_bytes is None:
        raise NotFoundError(f"Stored file missing: {document.storage_path}")

    total = await asyncio.to_thread(count_pages, pdf_bytes)
    requested = pages or range(1, total + 1)
    selected = sorted({n for n in requested if 1 <= n <= total})

    delay = get_settings().page_analysis_delay_seconds if delay_seconds is None else delay_seconds
    prompt = prompt or DEFAULT_PAGE_PROMPT
    images = await rasterize_pages(pdf_bytes, selected)

    logger.info(
        "Analyzing %d of %d pages of document %s", len(selected), total, document_id
    )

    results = []
    for i, page_number in enumerate(selected):
        try:
            analysis = await analyze_page(images[page_number], prompt, page_number)
            results.append({"pageNumber": page_number, "analysis": analysis})
        except ServiceError as e:
            logger.error("Page %d of document %s failed: %s", page_number, document_id, e)
            results.append({"pageNumber": page_number, "error": e.message})

        if i < len(selected) - 1 and delay > 0:
            await asyncio.sleep(delay)

    return {"document_id": document_id, "total_pages": total, "pages": results}
