"""
Text extraction for uploads.
- text/plain and text/html: bytes decoded as-is
- PDF / Word: placeholder text, or pdfplumber / python-docx when FF_USE_PDF_EXTRACTION is on
"""

import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

from ..core.flags import get_flags

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOC = "application/msword"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
HTML = "text/html"
TEXT = "text/plain"

ALLOWED_MIME_TYPES = {PDF, DOC, DOCX, HTML, TEXT}

EXTENSION_MIME_TYPES = {
    ".pdf": PDF,
    ".doc": DOC,
    ".docx": DOCX,
    ".html": HTML,
    ".htm": HTML,
    ".txt": TEXT,
}


def detect_mime_type(content_type: Optional[str], filename: str) -> str:
    """Declared type first; the extension only when the declared type is generic."""
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared

    ext = Path(filename).suffix.lower()
    return EXTENSION_MIME_TYPES.get(ext, declared or "application/octet-stream")


def placeholder_text(filename: str, mime_type: str) -> str:
    kind = "PDF document" if mime_type == PDF else "Word document"
    return (
        f"{kind}: {filename}. Text extraction is not performed server-side; "
        "the original file is available in storage for analysis."
    )


async def extract_text(file_bytes: bytes, mime_type: str, filename: str) -> tuple[str, dict]:
    """
    Extract text from an upload. Returns (text, metadata).
    Plain text and HTML are decoded verbatim (UTF-8, invalid bytes replaced).
    """
    metadata = {"filename": filename, "mime_type": mime_type}

    if mime_type in (TEXT, HTML):
        text = file_bytes.decode("utf-8", errors="replace")
        metadata["extractor"] = "plaintext"

    elif mime_type in (PDF, DOC, DOCX):
        text = ""
        if get_flags().use_pdf_extraction:
            if mime_type == PDF:
                text = await asyncio.to_thread(_extract_pdf, file_bytes)
                metadata["extractor"] = "pdfplumber"
            elif mime_type == DOCX:
                text = await asyncio.to_thread(_extract_docx, file_bytes)
                metadata["extractor"] = "python-docx"

        if not text.strip():
            text = placeholder_text(filename, mime_type)
            metadata["extractor"] = "placeholder"

    else:
        text = ""
        metadata["extractor"] = "unsupported"

    metadata["char_count"] = len(text)
    return text, metadata


def _extract_pdf(file_bytes: bytes) -> str:
    """Extract text from PDF using pdfplumber (local, free)."""
    try:
        import pdfplumber

        pages_text = []
        with pdfplumber.open(BytesIO(file_bytes)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""
                # Tables flattened to pipe-separated rows
                for table in page.extract_tables() or []:
                    for row in table:
                        if row:
                            text += "\n" + " | ".join(str(cell) if cell else "" for cell in row)
                pages_text.append(text)
        return "\n\n".join(pages_text)
    except Exception as e:
        logger.error("pdfplumber extraction failed: %s", e)
        return ""


def _extract_docx(file_bytes: bytes) -> str:
    """Extract text from DOCX."""
    try:
        import docx

        doc = docx.Document(BytesIO(file_bytes))
        return "\n\n".join(para.text for para in doc.paragraphs if para.text)
    except Exception as e:
        logger.error("DOCX extraction failed: %s", e)
        return ""
