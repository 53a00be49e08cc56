"""Tests for content-addressable stores."""

import asyncio
import hashlib
from unittest.mock import patch

import pytest

from dcap.domain.errors import NotFoundError, StoreError
from dcap.storage.content_store import (
    ContentStore,
    FileContentStore,
    InMemoryContentStore,
    compute_hash,
)


def test_compute_hash_is_sha256():
    assert compute_hash(b"hello") == hashlib.sha256(b"hello").hexdigest()


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryContentStore()
    return FileContentStore(tmp_path / "objects")


class TestContentStoreContract:
    """Behaviour shared by every backend."""

    def test_implements_protocol(self, store):
        assert isinstance(store, ContentStore)

    @pytest.mark.asyncio
    async def test_put_returns_content_hash(self, store):
        content_hash = await store.put(b'{"text":"hi"}')

        assert content_hash == compute_hash(b'{"text":"hi"}')
        assert await store.get(content_hash) == b'{"text":"hi"}'

    @pytest.mark.asyncio
    async def test_put_is_idempotent(self, store):
        first = await store.put(b"same bytes")
        second = await store.put(b"same bytes")

        assert first == second

    @pytest.mark.asyncio
    async def test_get_unknown_hash_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            await store.get(compute_hash(b"never stored"))

    @pytest.mark.asyncio
    async def test_exists(self, store):
        content_hash = await store.put(b"x")

        assert await store.exists(content_hash) is True
        assert await store.exists(compute_hash(b"y")) is False


class TestFileContentStore:
    @pytest.mark.asyncio
    async def test_sharded_layout(self, tmp_path):
        store = FileContentStore(tmp_path)
        content_hash = await store.put(b"payload")

        assert (tmp_path / content_hash[:2] / content_hash).read_bytes() == b"payload"

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, tmp_path):
        store = FileContentStore(tmp_path)
        content_hash = await store.put(b"payload")

        leftovers = [p for p in (tmp_path / content_hash[:2]).iterdir() if p.name.startswith(".tmp-")]
        assert leftovers == []

    @pytest.mark.asyncio
    async def test_corrupt_object_raises_store_error(self, tmp_path):
        store = FileContentStore(tmp_path)
        content_hash = await store.put(b"original")
        (tmp_path / content_hash[:2] / content_hash).write_bytes(b"tampered")

        with pytest.raises(StoreError, match="corrupt"):
            await store.get(content_hash)

    @pytest.mark.asyncio
    async def test_malformed_hash_is_not_found(self, tmp_path):
        store = FileContentStore(tmp_path)

        with pytest.raises(NotFoundError):
            await store.get("../../etc/passwd")
        assert await store.exists("not-a-hash") is False

    @pytest.mark.asyncio
    async def test_disk_io_runs_in_worker_thread(self, tmp_path):
        store = FileContentStore(tmp_path)

        with patch("dcap.storage.content_store.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
            content_hash = await store.put(b"payload")
            await store.get(content_hash)
            await store.exists(content_hash)

        assert to_thread.call_count == 3

    @pytest.mark.asyncio
    async def test_write_failure_is_store_error(self, tmp_path):
        store = FileContentStore(tmp_path)

        with patch.object(FileContentStore, "_write_object", side_effect=OSError("disk full")):
            with pytest.raises(StoreError, match="disk full"):
                await store.put(b"payload")
