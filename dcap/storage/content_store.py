"""Content-addressable blob storage.

Objects are addressed by the SHA-256 hex digest of their bytes, so storing
the same bytes twice yields the same address and never overwrites anything.
"""

import asyncio
import hashlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Protocol, runtime_checkable

from dcap.domain.errors import NotFoundError, StoreError


logger = logging.getLogger(__name__)

_HASH_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def compute_hash(content: bytes) -> str:
    """SHA-256 hex digest used as the content address."""
    return hashlib.sha256(content).hexdigest()


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for content-addressable storage backends."""

    async def put(self, content: bytes) -> str:
        """Store content and return its hash."""
        ...

    async def get(self, content_hash: str) -> bytes:
        """Retrieve content by hash.

        Raises:
            NotFoundError: If content not found
            StoreError: If stored content doesn't match its hash
        """
        ...

    async def exists(self, content_hash: str) -> bool:
        """Check if content exists."""
        ...


class InMemoryContentStore:
    """Dict-backed content store for testing and embedding."""

    def __init__(self):
        self._objects: Dict[str, bytes] = {}

    async def put(self, content: bytes) -> str:
        content_hash = compute_hash(content)
        self._objects.setdefault(content_hash, bytes(content))
        return content_hash

    async def get(self, content_hash: str) -> bytes:
        try:
            return self._objects[content_hash]
        except KeyError:
            raise NotFoundError("object", content_hash) from None

    async def exists(self, content_hash: str) -> bool:
        return content_hash in self._objects


class FileContentStore:
    """Filesystem content store.

    Layout: ``<root>/<hash[:2]>/<hash>``. Writes go to a temp file in the
    shard directory and are moved into place with ``os.replace``. Disk I/O
    runs in a worker thread so the event loop keeps serving other requests.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, content_hash: str) -> Path:
        if not _HASH_PATTERN.match(content_hash):
            raise NotFoundError("object", content_hash)
        return self.root / content_hash[:2] / content_hash

    async def put(self, content: bytes) -> str:
        content_hash = compute_hash(content)
        path = self._path_for(content_hash)

        try:
            written = await asyncio.to_thread(self._write_object, path, content)
        except OSError as e:
            raise StoreError(f"Failed to store object {content_hash}: {e}") from e

        if written:
            logger.debug(f"Stored object {content_hash} ({len(content)} bytes)")
        return content_hash

    @staticmethod
    def _write_object(path: Path, content: bytes) -> bool:
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return True

    async def get(self, content_hash: str) -> bytes:
        path = self._path_for(content_hash)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            raise NotFoundError("object", content_hash) from None
        except OSError as e:
            raise StoreError(f"Failed to read object {content_hash}: {e}") from e

        if compute_hash(content) != content_hash:
            raise StoreError(
                f"Object {content_hash} is corrupt: content does not match its hash"
            )
        return content

    async def exists(self, content_hash: str) -> bool:
        try:
            path = self._path_for(content_hash)
        except NotFoundError:
            return False
        return await asyncio.to_thread(path.exists)
