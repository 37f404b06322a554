"""Upload pipeline: validation, extraction, storage and POST /v1/upload-document."""

from unittest.mock import AsyncMock, patch

import pytest

from eia_analyst.core.config import get_settings
from eia_analyst.core.errors import InvalidInputError
from eia_analyst.core.flags import get_flags
from eia_analyst.models import Analysis, Document
from eia_analyst.services.extraction import (
    DOCX,
    HTML,
    PDF,
    TEXT,
    detect_mime_type,
    extract_text,
)
from eia_analyst.services.upload import ingest_upload, validate_upload


class TestDetectMimeType:
    def test_declared_type_wins(self):
        assert detect_mime_type("text/plain; charset=utf-8", "notes.pdf") == TEXT

    def test_generic_type_uses_extension(self):
        assert detect_mime_type("application/octet-stream", "report.PDF") == PDF
        assert detect_mime_type(None, "report.docx") == DOCX
        assert detect_mime_type("", "index.htm") == HTML

    def test_unknown_extension_stays_generic(self):
        assert detect_mime_type(None, "archive.zip") == "application/octet-stream"


class TestValidateUpload:
    def test_rejects_unsupported_type(self):
        with pytest.raises(InvalidInputError, match="Unsupported file type: image/png"):
            validate_upload(10, "image/png")

    def test_rejects_oversized(self):
        with pytest.raises(InvalidInputError, match="File size exceeds 500MB limit"):
            validate_upload(500 * 1024 * 1024 + 1, PDF)

    def test_accepts_exact_limit(self):
        validate_upload(500 * 1024 * 1024, PDF)

    def test_rejects_empty(self):
        with pytest.raises(InvalidInputError, match="Empty file"):
            validate_upload(0, TEXT)


class TestExtractText:
    async def test_plain_text_is_verbatim(self):
        text, meta = await extract_text(b"hello world", TEXT, "a.txt")
        assert text == "hello world"
        assert meta["extractor"] == "plaintext"

    async def test_html_is_not_stripped(self):
        text, _ = await extract_text(b"<p>River crossing</p>", HTML, "a.html")
        assert text == "<p>River crossing</p>"

    async def test_pdf_uses_placeholder_when_extraction_off(self):
        text, meta = await extract_text(b"%PDF-1.4", PDF, "eia.pdf")
        assert "eia.pdf" in text
        assert meta["extractor"] == "placeholder"

    async def test_pdf_extraction_falls_back_on_empty_text(self, monkeypatch):
        monkeypatch.setattr(get_flags(), "use_pdf_extraction", True)
        with patch("eia_analyst.services.extraction._extract_pdf", return_value="") as extract:
            text, meta = await extract_text(b"%PDF-1.4", PDF, "eia.pdf")

        extract.assert_called_once()
        assert meta["extractor"] == "placeholder"
        assert "PDF document" in text

    async def test_docx_extraction_used_when_enabled(self, monkeypatch):
        monkeypatch.setattr(get_flags(), "use_pdf_extraction", True)
        with patch("eia_analyst.services.extraction._extract_docx", return_value="Section 1"):
            text, meta = await extract_text(b"PK", DOCX, "eia.docx")

        assert text == "Section 1"
        assert meta["extractor"] == "python-docx"


class TestIngestUpload:
    async def test_stores_file_and_row(self, db_session, storage):
        doc = await ingest_upload(
            db_session, storage, b"hello world", "notes.txt", "text/plain", title="Notes"
        )

        assert doc.content == "hello world"
        assert doc.upload_status == "completed"
        assert doc.mime_type == TEXT
        assert doc.file_size == 11
        assert doc.original_filename == "notes.txt"
        assert doc.storage_path == f"documents/{doc.filename}"
        assert doc.filename.endswith(".txt")
        assert await storage.download(doc.storage_path) == b"hello world"

    async def test_blank_title_gets_default(self, db_session, storage):
        doc = await ingest_upload(db_session, storage, b"x", "a.txt", "text/plain", title="  ")
        assert doc.title == "Untitled Document"

    async def test_oversized_rejected_before_any_write(
        self, db_session, storage, count_rows, monkeypatch
    ):
        monkeypatch.setattr(get_settings(), "max_upload_bytes", 4)
        storage.upload = AsyncMock()

        with pytest.raises(InvalidInputError, match="File size exceeds"):
            await ingest_upload(db_session, storage, b"too large", "a.txt", "text/plain")

        storage.upload.assert_not_awaited()
        assert await count_rows(Document) == 0


class TestUploadEndpoint:
    async def test_text_upload_round_trip(self, client):
        r = await client.post(
            "/v1/upload-document",
            files={"file": ("hello.txt", b"hello world", "text/plain")},
            data={"title": "Greeting", "description": "test file"},
        )

        assert r.status_code == 200
        data = r.json()
        assert data["success"] is True
        assert data["message"]
        document = data["document"]
        assert document["content"] == "hello world"
        assert document["title"] == "Greeting"
        assert document["description"] == "test file"
        assert document["upload_status"] == "completed"

        r = await client.get(f"/v1/documents/{document['id']}")
        assert r.status_code == 200
        assert r.json()["content"] == "hello world"

    async def test_unsupported_type_is_500(self, client, count_rows):
        r = await client.post(
            "/v1/upload-document",
            files={"file": ("photo.png", b"\x89PNG", "image/png")},
        )

        assert r.status_code == 500
        assert r.json()["success"] is False
        assert r.json()["error"].startswith("Unsupported file type")
        assert await count_rows(Document) == 0

    async def test_oversized_upload_writes_nothing(self, client, count_rows, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_upload_bytes", 8)

        r = await client.post(
            "/v1/upload-document",
            files={"file": ("big.txt", b"0123456789abcdef", "text/plain")},
        )

        assert r.status_code == 500
        assert "File size exceeds" in r.json()["error"]
        assert await count_rows(Document) == 0

    async def test_missing_file_is_500(self, client):
        r = await client.post("/v1/upload-document", data={"title": "No file"})
        assert r.status_code == 500
        assert r.json()["success"] is False

    async def test_auto_analysis_runs_after_upload(self, client, count_rows, monkeypatch):
        monkeypatch.setattr(get_flags(), "auto_analyze", True)

        with patch(
            "eia_analyst.services.llm.claude_message", new=AsyncMock(return_value="auto")
        ) as claude:
            r = await client.post(
                "/v1/upload-document",
                files={"file": ("a.txt", b"caribou", "text/plain")},
            )

        assert r.status_code == 200
        claude.assert_awaited_once()
        assert await count_rows(Analysis) == 1

    async def test_auto_analysis_failure_does_not_affect_upload(
        self, client, count_rows, monkeypatch
    ):
        monkeypatch.setattr(get_flags(), "auto_analyze", True)
        monkeypatch.setattr(get_settings(), "anthropic_api_key", "")

        r = await client.post(
            "/v1/upload-document",
            files={"file": ("a.txt", b"caribou", "text/plain")},
        )

        assert r.status_code == 200
        assert r.json()["success"] is True
        assert await count_rows(Document) == 1

    async def test_list_documents(self, client):
        for name in ("first.txt", "second.txt"):
            await client.post(
                "/v1/upload-document",
                files={"file": (name, b"content", "text/plain")},
                data={"title": name},
            )

        r = await client.get("/v1/documents")
        assert r.status_code == 200
        assert {d["title"] for d in r.json()} == {"first.txt", "second.txt"}

    async def test_get_missing_document_is_404(self, client):
        r = await client.get("/v1/documents/nope")
        assert r.status_code == 404
