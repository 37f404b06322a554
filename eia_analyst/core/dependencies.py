"""
Request-scoped dependencies for the routers: a database session and the
storage backend raw uploads are written to.
"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from .database import session_scope
from .storage import StorageBackend, get_storage


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request; committed when the handler returns, rolled back on error."""
    async with session_scope() as session:
        yield session


def get_storage_dep() -> StorageBackend:
    """S3 when FF_USE_S3 is on, the local folder otherwise. Tests override this."""
    return get_storage()
