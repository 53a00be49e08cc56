"""Tests for the type registry."""

import asyncio
import json
from unittest.mock import patch

import pytest

from conftest import NOTE_SCHEMA, SECRET_SCHEMA, write_type
from dcap.domain.errors import ConfigError, NotFoundError, StoreError
from dcap.domain.models import TypeDefinition, TypeIndex
from dcap.domain.registry import TypeRegistry
from dcap.storage.content_store import InMemoryContentStore


def _registry(types_dir, store=None, **kwargs):
    if store is None:
        store = InMemoryContentStore()
    return TypeRegistry(types_dir, store, retry_delay=0, **kwargs)


class TestLoadTypes:
    def test_loads_every_record(self, types_dir):
        registry = _registry(types_dir)

        types = registry.load_types()

        assert set(types) == {"note", "secret"}
        assert registry.count() == 2
        assert registry.list_names() == ["note", "secret"]

    def test_loaded_definitions(self, types_dir):
        registry = _registry(types_dir)
        registry.load_types()

        note = registry.get("note")
        assert isinstance(note, TypeDefinition)
        assert note.encrypted is False
        assert note.catalog_hash is None
        assert note.source_path == types_dir / "note.json"
        assert registry.get("secret").encrypted is True

    def test_reads_existing_pointer(self, tmp_path):
        write_type(tmp_path, {**NOTE_SCHEMA, "hash": "f" * 64})
        registry = _registry(tmp_path)
        registry.load_types()

        note = registry.get("note")
        assert note.catalog_hash == "f" * 64
        assert "hash" not in note.schema

    def test_title_must_match_file_name(self, tmp_path):
        write_type(tmp_path, NOTE_SCHEMA, name="memo")

        with pytest.raises(ConfigError, match="must match title"):
            _registry(tmp_path).load_types()

    def test_missing_title_is_config_error(self, tmp_path):
        write_type(tmp_path, {"type": "object"}, name="untitled")

        with pytest.raises(ConfigError, match="must match title"):
            _registry(tmp_path).load_types()

    def test_invalid_schema_is_config_error(self, tmp_path):
        write_type(tmp_path, {"title": "bad", "type": 42})

        with pytest.raises(ConfigError, match="invalid JSON Schema"):
            _registry(tmp_path).load_types()

    def test_unparseable_record_is_config_error(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Unable to read"):
            _registry(tmp_path).load_types()

    def test_non_object_record_is_config_error(self, tmp_path):
        (tmp_path / "list.json").write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigError, match="JSON object"):
            _registry(tmp_path).load_types()

    def test_missing_directory_is_config_error(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            _registry(tmp_path / "nope").load_types()

    def test_ignores_non_json_files(self, types_dir):
        (types_dir / "README.md").write_text("# types", encoding="utf-8")

        assert _registry(types_dir).load_types().keys() == {"note", "secret"}


class TestLookup:
    def test_get_unknown_raises_not_found(self, types_dir):
        registry = _registry(types_dir)
        registry.load_types()

        with pytest.raises(NotFoundError, match="Type 'nope' not found") as exc_info:
            registry.get("nope")
        assert exc_info.value.error_code == "TYPE_NOT_FOUND"


class TestEnsureCatalogs:
    @pytest.mark.asyncio
    async def test_seeds_empty_catalog_and_persists_pointer(self, types_dir):
        store = InMemoryContentStore()
        registry = _registry(types_dir, store)
        registry.load_types()

        seeded = await registry.ensure_catalogs()

        assert seeded == ["note", "secret"]
        note = registry.get("note")
        assert TypeIndex.from_bytes(await store.get(note.catalog_hash)).entries == []
        record = json.loads((types_dir / "note.json").read_text(encoding="utf-8"))
        assert record["hash"] == note.catalog_hash
        assert record["properties"] == NOTE_SCHEMA["properties"]

    @pytest.mark.asyncio
    async def test_skips_types_with_pointer(self, tmp_path):
        write_type(tmp_path, {**NOTE_SCHEMA, "hash": "f" * 64})
        write_type(tmp_path, SECRET_SCHEMA)
        registry = _registry(tmp_path)
        registry.load_types()

        seeded = await registry.ensure_catalogs()

        assert seeded == ["secret"]
        assert registry.get("note").catalog_hash == "f" * 64

    @pytest.mark.asyncio
    async def test_seeded_pointer_survives_reload(self, types_dir):
        store = InMemoryContentStore()
        registry = _registry(types_dir, store)
        registry.load_types()
        await registry.ensure_catalogs()

        reloaded = _registry(types_dir, store)
        reloaded.load_types()

        assert reloaded.get("note").catalog_hash == registry.get("note").catalog_hash
        assert await reloaded.ensure_catalogs() == []


class TestPersistCatalogPointer:
    @pytest.mark.asyncio
    async def test_rewrites_record_and_memory(self, registry, types_dir):
        note = registry.get("note")

        await registry.persist_catalog_pointer(note, "e" * 64)

        assert note.catalog_hash == "e" * 64
        record = json.loads((types_dir / "note.json").read_text(encoding="utf-8"))
        assert record["hash"] == "e" * 64
        assert record["title"] == "note"

    @pytest.mark.asyncio
    async def test_leaves_no_temp_files(self, registry, types_dir):
        await registry.persist_catalog_pointer(registry.get("note"), "e" * 64)

        assert sorted(p.name for p in types_dir.iterdir()) == ["note.json", "secret.json"]

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self, registry):
        note = registry.get("note")
        real_write = TypeRegistry._write_record
        calls = []

        def flaky_write(path, record):
            calls.append(path)
            if len(calls) == 1:
                raise OSError("disk busy")
            real_write(path, record)

        with patch.object(TypeRegistry, "_write_record", side_effect=flaky_write):
            await registry.persist_catalog_pointer(note, "d" * 64)

        assert len(calls) == 2
        assert note.catalog_hash == "d" * 64

    @pytest.mark.asyncio
    async def test_exhausted_retries_keep_old_pointer(self, registry):
        note = registry.get("note")
        old_hash = note.catalog_hash

        with patch.object(TypeRegistry, "_write_record", side_effect=OSError("read-only")) as write:
            with pytest.raises(StoreError, match="Unable to persist catalog pointer"):
                await registry.persist_catalog_pointer(note, "d" * 64)

        assert write.call_count == 3
        assert note.catalog_hash == old_hash

    @pytest.mark.asyncio
    async def test_write_runs_in_worker_thread(self, registry):
        with patch("dcap.domain.registry.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
            await registry.persist_catalog_pointer(registry.get("note"), "c" * 64)

        to_thread.assert_called_once()
        assert to_thread.call_args.args[0] == TypeRegistry._write_record
