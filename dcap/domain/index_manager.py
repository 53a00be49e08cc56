"""Type index manager - read-modify-write of per-type catalogs.

Every catalog mutation goes through ``upsert_entry`` or ``remove_entry``,
which hold the type's lock for the whole load -> mutate -> commit cycle.
Different types have different locks and never wait on each other.

Content store failures are not caught here; they propagate to the caller.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from dcap.domain.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
)
from dcap.domain.models import CatalogChange, IndexEntry, TypeDefinition, TypeIndex
from dcap.domain.registry import TypeRegistry
from dcap.storage.content_store import ContentStore


logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class TypeIndexManager:
    """Loads, mutates and commits type catalogs."""

    def __init__(
        self,
        registry: TypeRegistry,
        content_store: ContentStore,
        clock: Callable[[], int] = now_ms,
    ):
        self._registry = registry
        self._store = content_store
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, title: str) -> asyncio.Lock:
        # No await between lookup and insert, so this cannot race on one loop.
        lock = self._locks.get(title)
        if lock is None:
            lock = self._locks[title] = asyncio.Lock()
        return lock

    async def load_catalog(self, type_def: TypeDefinition) -> TypeIndex:
        """Fetch the type's current catalog.

        Raises:
            NotFoundError: The type has no pointer, or it points at nothing.
            StoreError: The stored catalog is not a valid catalog object.
        """
        if not type_def.catalog_hash:
            raise NotFoundError("catalog", type_def.title)

        raw = await self._store.get(type_def.catalog_hash)
        try:
            return TypeIndex.from_bytes(raw)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreError(
                f"Catalog {type_def.catalog_hash} for type '{type_def.title}' is malformed"
            ) from e

    async def commit_catalog(self, type_def: TypeDefinition, catalog: TypeIndex) -> str:
        """Store ``catalog`` and make it the type's current version."""
        catalog_hash = await self._store.put(catalog.to_bytes())
        await self._registry.persist_catalog_pointer(type_def, catalog_hash)
        logger.info(
            f"Committed catalog for {type_def.title}: "
            f"{len(catalog.entries)} entries, {catalog_hash}"
        )
        return catalog_hash

    async def upsert_entry(
        self,
        type_def: TypeDefinition,
        document_hash: str,
        acting_user: str,
        target_hash: Optional[str] = None,
    ) -> CatalogChange:
        """Add an entry for ``document_hash``, or replace ``target_hash`` with it.

        Raises:
            ConflictError: ``document_hash`` is already in the catalog.
            NotFoundError: ``target_hash`` is not in the catalog.
            PermissionDeniedError: ``acting_user`` does not own the target.
        """
        async with self._lock_for(type_def.title):
            catalog = await self.load_catalog(type_def)

            if catalog.contains(document_hash):
                raise ConflictError(
                    "Document already exists",
                    details={"hash": document_hash},
                )

            now = self._clock()
            if target_hash is not None:
                position = catalog.find(target_hash)
                if position is None:
                    raise NotFoundError("document", target_hash)
                current = catalog.entries[position]
                if current.owner != acting_user:
                    raise PermissionDeniedError()
                entry = IndexEntry(
                    created=current.created,
                    updated=max(now, current.updated),
                    owner=current.owner,
                    content_link=document_hash,
                )
                catalog.entries[position] = entry
            else:
                entry = IndexEntry(
                    created=now,
                    updated=now,
                    owner=acting_user,
                    content_link=document_hash,
                )
                catalog.entries.append(entry)

            catalog_hash = await self.commit_catalog(type_def, catalog)

        return CatalogChange(
            document_hash=document_hash,
            catalog_hash=catalog_hash,
            entry=entry,
        )

    async def remove_entry(
        self,
        type_def: TypeDefinition,
        target_hash: str,
        acting_user: str,
    ) -> CatalogChange:
        """Remove the entry for ``target_hash``; the catalog is compacted.

        Raises:
            NotFoundError: ``target_hash`` is not in the catalog.
            PermissionDeniedError: ``acting_user`` does not own the entry.
        """
        async with self._lock_for(type_def.title):
            catalog = await self.load_catalog(type_def)

            position = catalog.find(target_hash)
            if position is None:
                raise NotFoundError("document", target_hash)
            entry = catalog.entries[position]
            if entry.owner != acting_user:
                raise PermissionDeniedError()

            del catalog.entries[position]
            catalog_hash = await self.commit_catalog(type_def, catalog)

        return CatalogChange(
            document_hash=target_hash,
            catalog_hash=catalog_hash,
            entry=entry,
        )
