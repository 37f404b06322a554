"""
Raw file storage for uploaded documents. S3 OR local filesystem. Controlled by FF_USE_S3.

The returned storage path is what gets written to Document.storage_path and
is the only handle needed to read the bytes back.
"""

import asyncio
import logging
import mimetypes
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .config import get_settings
from .flags import get_flags

logger = logging.getLogger(__name__)


def stored_name(filename: str) -> str:
    """Unique object name that keeps the original extension."""
    ext = Path(filename).suffix.lower()
    return f"{uuid.uuid4()}{ext}"


class StorageBackend(ABC):
    @abstractmethod
    async def upload(self, file_bytes: bytes, name: str, folder: str = "documents") -> str:
        """Store bytes under folder/name. Returns the storage path."""
        ...

    @abstractmethod
    async def download(self, storage_path: str) -> Optional[bytes]:
        """Read a stored file back. None if it does not exist."""
        ...


class S3Storage(StorageBackend):
    def __init__(self, bucket: Optional[str] = None):
        self.bucket = bucket or get_settings().s3_bucket_name
        self._client = None

    @property
    def client(self):
        if self._client is None:
            import boto3

            settings = get_settings()
            credentials = {}
            if settings.aws_access_key_id:  # else the default AWS credential chain
                credentials = {
                    "aws_access_key_id": settings.aws_access_key_id,
                    "aws_secret_access_key": settings.aws_secret_access_key,
                }
            self._client = boto3.client("s3", region_name=settings.aws_region, **credentials)
        return self._client

    async def upload(self, file_bytes: bytes, name: str, folder: str = "documents") -> str:
        key = f"{folder}/{name}".strip("/")

        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=file_bytes,
            ContentType=_guess_content_type(name),
        )
        logger.info("Uploaded to S3: %s (%d bytes)", key, len(file_bytes))
        return key

    async def download(self, storage_path: str) -> Optional[bytes]:
        from botocore.exceptions import ClientError

        try:
            obj = await asyncio.to_thread(
                self.client.get_object,
                Bucket=self.bucket,
                Key=storage_path,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise
        return await asyncio.to_thread(obj["Body"].read)


class LocalStorage(StorageBackend):
    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path or get_settings().local_storage_path)

    async def upload(self, file_bytes: bytes, name: str, folder: str = "documents") -> str:
        dir_path = self.base_path / folder if folder else self.base_path
        dir_path.mkdir(parents=True, exist_ok=True)
        (dir_path / name).write_bytes(file_bytes)

        key = f"{folder}/{name}".strip("/")
        logger.info("Saved locally: %s (%d bytes)", key, len(file_bytes))
        return key

    async def download(self, storage_path: str) -> Optional[bytes]:
        path = self.base_path / storage_path
        if not path.is_file():
            return None
        return path.read_bytes()


def get_storage() -> StorageBackend:
    """Return the active storage backend based on feature flags."""
    if get_flags().use_s3:
        return S3Storage()
    return LocalStorage()


def _guess_content_type(filename: str) -> str:
    ct, _ = mimetypes.guess_type(filename)
    return ct or "application/octet-stream"
