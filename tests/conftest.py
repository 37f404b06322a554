"""Test configuration and fixtures for the EIA analyst service."""

import os

# Settings are cached on first use; pin a test environment before any import.
os.environ.update(
    {
        "ENV": "test",
        "DATABASE_URL": "sqlite+aiosqlite://",
        "GEMINI_API_KEY": "test-gemini-key",
        "ANTHROPIC_API_KEY": "test-anthropic-key",
        "PERPLEXITY_API_KEY": "",
        "LLM_MAX_RETRIES": "0",
        "PAGE_ANALYSIS_DELAY_SECONDS": "0",
        "FF_USE_S3": "false",
        "FF_USE_REDIS": "false",
        "FF_USE_ONLINE_SEARCH": "false",
        "FF_AUTO_ANALYZE": "false",
        "FF_USE_PDF_EXTRACTION": "false",
    }
)

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

import eia_analyst.models  # noqa: F401
from eia_analyst.core import database
from eia_analyst.core.database import Base
from eia_analyst.core.dependencies import get_storage_dep
from eia_analyst.core.storage import LocalStorage
from eia_analyst.factory import create_app
from eia_analyst.models import Document, Persona


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Fresh in-memory SQLite database per test, installed as the app engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    database.use_engine(engine)
    yield engine
    database.use_engine(None)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = database.get_session_factory()
    async with factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "storage"))


@pytest.fixture
def app(db_engine, storage):
    application = create_app()
    application.dependency_overrides[get_storage_dep] = lambda: storage
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ── Data helpers ─────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def make_document(db_session):
    async def _make(content="Caribou calving grounds lie north of the project site.", **kwargs):
        fields = {
            "title": "North Mine EIA",
            "filename": "stored.txt",
            "original_filename": "north-mine.txt",
            "mime_type": "text/plain",
            "file_size": len(content or ""),
            "content": content,
            "storage_path": "documents/stored.txt",
            "upload_status": "completed",
        }
        fields.update(kwargs)
        document = Document(**fields)
        db_session.add(document)
        await db_session.commit()
        return document

    return _make


@pytest_asyncio.fixture
async def make_persona(db_session):
    async def _make(**kwargs):
        fields = {
            "name": "Fish Habitat Specialist",
            "system_prompt": "You are a fisheries biologist reviewing aquatic impacts.",
            "expertise_areas": ["fish", "spawning"],
        }
        fields.update(kwargs)
        persona = Persona(**fields)
        db_session.add(persona)
        await db_session.commit()
        return persona

    return _make


@pytest.fixture
def count_rows(db_engine):
    """Count rows of a model through a fresh session."""
    async def _count(model) -> int:
        async with database.get_session_factory()() as session:
            return await session.scalar(select(func.count()).select_from(model))

    return _count
