"""
Status notifications for the dashboard. Thin wrapper around core.redis.
"""

from typing import Optional

from ..core import redis as _redis

DOCUMENTS_CHANNEL = "documents"
ANALYSES_CHANNEL = "analyses"


async def document_uploaded(document_id: str, title: str):
    await _redis.publish(
        DOCUMENTS_CHANNEL, "document.uploaded", {"document_id": document_id, "title": title}
    )


async def analysis_status(
    analysis_id: str, document_id: str, status: str, error: Optional[str] = None
):
    data = {"analysis_id": analysis_id, "document_id": document_id, "status": status}
    if error:
        data["error"] = error
    await _redis.publish(ANALYSES_CHANNEL, f"analysis.{status}", data)


async def analysis_trigger_failed(document_id: str, error: str):
    """Background auto-analysis failed before or after creating its row."""
    await _redis.publish(
        ANALYSES_CHANNEL, "analysis.trigger_failed", {"document_id": document_id, "error": error}
    )
