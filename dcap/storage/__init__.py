"""Content-addressable storage backends."""

from dcap.storage.content_store import (
    ContentStore,
    FileContentStore,
    InMemoryContentStore,
    compute_hash,
)

__all__ = [
    "ContentStore",
    "FileContentStore",
    "InMemoryContentStore",
    "compute_hash",
]
