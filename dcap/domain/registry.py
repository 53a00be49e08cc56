"""Type registry - type definitions and their durable catalog pointers.

Each type is one JSON record ``<types_dir>/<title>.json``: the type's JSON
Schema, plus the current catalog hash under the key ``hash`` once the
catalog has been seeded.

Usage:
    registry = TypeRegistry(Path("config/types"), content_store)
    registry.load_types()
    await registry.ensure_catalogs()
    note = registry.get("note")
"""

import asyncio
import json
import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from dcap.domain.errors import ConfigError, NotFoundError, StoreError
from dcap.domain.models import TypeDefinition, TypeIndex
from dcap.storage.content_store import ContentStore
from dcap.validation.schema_validator import SchemaValidator


logger = logging.getLogger(__name__)


class TypeRegistry:
    """In-memory registry of declared types, backed by config records.

    The in-memory ``catalog_hash`` of a type only changes after the new
    pointer has been durably written, so readers never see a pointer that
    is not on disk.
    """

    def __init__(
        self,
        types_dir: Path,
        content_store: ContentStore,
        validator: Optional[SchemaValidator] = None,
        retry_attempts: int = 3,
        retry_delay: float = 0.1,
    ):
        self._types_dir = Path(types_dir)
        self._store = content_store
        self._validator = validator or SchemaValidator()
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay
        self._types: Dict[str, TypeDefinition] = {}

    # =========================================================================
    # Loading
    # =========================================================================

    def load_types(self) -> Dict[str, TypeDefinition]:
        """Load and validate every type record.

        Raises:
            ConfigError: missing directory, unreadable record, title that
                does not match the file name, or an invalid schema.
        """
        if not self._types_dir.is_dir():
            raise ConfigError(f"Types directory not found: {self._types_dir}")

        types: Dict[str, TypeDefinition] = {}
        for path in sorted(self._types_dir.glob("*.json")):
            type_def = self._load_record(path)
            types[type_def.title] = type_def
            logger.info(
                f"Loaded type: {type_def.title}"
                f"{' (encrypted)' if type_def.encrypted else ''}"
            )

        self._types = types
        return dict(types)

    def _load_record(self, path: Path) -> TypeDefinition:
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                record = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Unable to read type config {path.name}: {e}") from e

        if not isinstance(record, dict):
            raise ConfigError(f"Type config {path.name} must be a JSON object")

        if record.get("title") != path.stem:
            raise ConfigError(
                f"Type config file name must match title attribute: "
                f"{path.name} declares title {record.get('title')!r}"
            )

        type_def = TypeDefinition.from_record(record, source_path=path)
        self._validator.check_schema(type_def.schema)
        return type_def

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, name: str) -> TypeDefinition:
        """Get a type by title.

        Raises:
            NotFoundError: If no such type is loaded.
        """
        type_def = self._types.get(name)
        if type_def is None:
            raise NotFoundError("type", name)
        return type_def

    def list_names(self) -> List[str]:
        return sorted(self._types)

    def count(self) -> int:
        return len(self._types)

    # =========================================================================
    # Catalog pointers
    # =========================================================================

    async def ensure_catalogs(self) -> List[str]:
        """Seed an empty catalog for every type without a pointer.

        Returns:
            Titles of the types that were seeded.
        """
        seeded = []
        for title in self.list_names():
            type_def = self._types[title]
            if type_def.catalog_hash:
                continue
            catalog_hash = await self._store.put(TypeIndex().to_bytes())
            await self.persist_catalog_pointer(type_def, catalog_hash)
            seeded.append(title)
            logger.info(f"Seeded empty catalog for type {title}: {catalog_hash}")
        return seeded

    async def persist_catalog_pointer(self, type_def: TypeDefinition, catalog_hash: str) -> None:
        """Durably record ``catalog_hash`` as the type's current catalog.

        The write runs in a worker thread. Transient filesystem failures are
        retried with exponential backoff.

        Raises:
            StoreError: If every attempt failed; the old pointer stays current.
        """
        record = replace(type_def, catalog_hash=catalog_hash).to_record()
        path = type_def.source_path or (self._types_dir / f"{type_def.title}.json")

        delay = self._retry_delay
        for attempt in range(1, self._retry_attempts + 1):
            try:
                await asyncio.to_thread(self._write_record, path, record)
                break
            except OSError as e:
                if attempt == self._retry_attempts:
                    logger.error(
                        f"Giving up on catalog pointer for {type_def.title} "
                        f"after {attempt} attempts: {e}"
                    )
                    raise StoreError(
                        f"Unable to persist catalog pointer for type '{type_def.title}'",
                        details={"catalog_hash": catalog_hash},
                    ) from e
                logger.warning(
                    f"Catalog pointer write for {type_def.title} failed "
                    f"(attempt {attempt}/{self._retry_attempts}): {e}"
                )
                await asyncio.sleep(delay)
                delay *= 2

        type_def.catalog_hash = catalog_hash
        logger.debug(f"Catalog pointer for {type_def.title} -> {catalog_hash}")

    @staticmethod
    def _write_record(path: Path, record: Dict) -> None:
        """Write a record atomically: temp file in the same directory, then replace."""
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
