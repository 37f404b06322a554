"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter

router = APIRouter()


# ── Health ───────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "eia-analyst"}


# ── V1 routes ────────────────────────────────────────────────────────

from .analysis import analysis_router
from .chat import chat_router
from .documents import documents_router
from .pages import pages_router
from .personas import personas_router
from .search import search_router

router.include_router(documents_router, prefix="/v1")
router.include_router(analysis_router, prefix="/v1")
router.include_router(chat_router, prefix="/v1")
router.include_router(pages_router, prefix="/v1")
router.include_router(personas_router, prefix="/v1")
router.include_router(search_router, prefix="/v1")
