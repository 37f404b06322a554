"""Application wiring: health, CORS, error envelope, realtime no-op."""

from unittest.mock import AsyncMock, patch

import httpx

from eia_analyst.core import redis as core_redis
from eia_analyst.core.flags import get_flags
from eia_analyst.services import pdf_pages


class TestHealth:
    async def test_health(self, client):
        r = await client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "service": "eia-analyst"}


class TestCors:
    async def test_preflight_is_answered(self, client):
        r = await client.options(
            "/v1/ai-analyst-chat",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "*"

    async def test_simple_request_has_allow_origin(self, client):
        r = await client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert r.headers["access-control-allow-origin"] == "*"


class TestErrorEnvelope:
    async def test_malformed_json_is_500(self, client):
        r = await client.post(
            "/v1/analyze-document",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 500
        assert r.json()["success"] is False

    async def test_unexpected_error_is_500_envelope(self, app, storage, make_document):
        path = await storage.upload(b"not a pdf at all", "broken.pdf")
        doc = await make_document(mime_type="application/pdf", filename="broken.pdf", storage_path=path)

        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        with patch.object(pdf_pages, "count_pages", side_effect=RuntimeError("corrupt PDF")):
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
                r = await c.post(f"/v1/documents/{doc.id}/pages/analyze", json={})

        assert r.status_code == 500
        assert r.headers["content-type"] == "application/json"
        assert r.json() == {"success": False, "error": "corrupt PDF"}


class TestRealtime:
    async def test_publish_is_noop_when_disabled(self):
        with patch.object(core_redis, "_get_redis", new=AsyncMock()) as get_redis:
            await core_redis.publish("documents", "document.uploaded", {"document_id": "x"})
        get_redis.assert_not_awaited()

    async def test_publish_never_raises(self, monkeypatch):
        monkeypatch.setattr(get_flags(), "use_redis", True)
        with patch.object(
            core_redis, "_get_redis", new=AsyncMock(side_effect=ConnectionError("down"))
        ):
            await core_redis.publish("analyses", "analysis.completed", {})
