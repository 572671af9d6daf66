"""
TripMatch Backend — Object Storage Interface
==============================================

What:  Abstract contract for storing uploaded event images, plus the local
       disk implementation used in development and tests.
How:   Callers pass a storage key (e.g. events/<id>/photos/2025/01/15/<uuid>.jpg)
       and get back a public URL. Backends decide where the bytes live.
Who:   FileService is the only caller; the health route probes health_check().

Implementations:
    - LocalFileStorage: writes under settings.storage_root, served by
      GET /api/files/{key}
    - WebDAVStorage (webdav_storage.py): PUTs to a WebDAV server with retry
      and a circuit breaker
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles

from tripmatch.exceptions import FileStorageError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """
    Contract:
        - upload() stores the bytes under `key` and returns a public URL
        - delete() removes the object; a missing object is not an error
        - health_check() never raises, it returns False when unreachable
    """

    @abstractmethod
    async def upload(self, key: str, content: bytes, content_type: str) -> str:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...


class LocalFileStorage(ObjectStorage):
    """
    Stores objects as files under a root directory.

    Directory Structure:
        storage/
        └── events/
            └── <event_id>/
                ├── cover/2025/01/15/<uuid>.jpg
                └── photos/2025/01/15/<uuid>.png
    """

    def __init__(self, root: str, public_url: str = "/api/files"):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_url = public_url.rstrip("/")
        logger.info("LocalFileStorage initialized with root=%s", self.root)

    def resolve(self, key: str) -> Path:
        """
        Map a key to a path inside the root.

        Raises:
            FileStorageError: the key escapes the storage root
        """
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise FileStorageError(
                message="Invalid storage key",
                context={"key": key},
            )
        return path

    async def upload(self, key: str, content: bytes, content_type: str) -> str:
        path = self.resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"key": key, "os_error": str(e)},
            ) from e
        logger.info("File stored: %s (%d bytes)", key, len(content))
        return f"{self.public_url}/{key}"

    async def delete(self, key: str) -> None:
        path = self.resolve(key)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Deleted file: %s", key)
        except OSError as e:
            logger.warning("Failed to delete file %s: %s", key, str(e))

    async def health_check(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)
