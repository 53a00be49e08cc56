"""
Shared pytest fixtures for all tests.

Provides isolated type directories, in-memory collaborators and a fully
wired document service.
"""

import json
from pathlib import Path

import pytest
import pytest_asyncio

from dcap.crypto.cipher import X25519Cipher, generate_keypair
from dcap.domain.document_service import DocumentService
from dcap.domain.index_manager import TypeIndexManager
from dcap.domain.registry import TypeRegistry
from dcap.storage.content_store import InMemoryContentStore
from dcap.users.directory import InMemoryUserDirectory
from dcap.validation.schema_validator import SchemaValidator


NOTE_SCHEMA = {
    "title": "note",
    "type": "object",
    "properties": {"text": {"type": "string"}},
    "required": ["text"],
}

SECRET_SCHEMA = {
    "title": "secret",
    "type": "object",
    "encrypted": True,
    "properties": {"label": {"type": "string"}, "value": {"type": "string"}},
    "required": ["label", "value"],
}

ALICE_PASSWORD = "alice-passphrase"
BOB_PASSWORD = "bob-passphrase"
ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"


def write_type(types_dir: Path, schema: dict, name: str = None) -> Path:
    """Write a type config record named after its title (or ``name``)."""
    path = types_dir / f"{name or schema['title']}.json"
    path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
    return path


class FakeClock:
    """Deterministic epoch-millisecond clock, advancing 1000ms per call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


# =============================================================================
# KEY MATERIAL
# =============================================================================

@pytest.fixture(scope="session")
def alice_keys():
    """(private_pem, public_pem) for alice."""
    return generate_keypair(ALICE_PASSWORD)


@pytest.fixture(scope="session")
def bob_keys():
    """(private_pem, public_pem) for bob."""
    return generate_keypair(BOB_PASSWORD)


# =============================================================================
# COLLABORATORS
# =============================================================================

@pytest.fixture
def types_dir(tmp_path) -> Path:
    """Type config directory with the note and secret types."""
    directory = tmp_path / "types"
    directory.mkdir()
    write_type(directory, NOTE_SCHEMA)
    write_type(directory, SECRET_SCHEMA)
    return directory


@pytest.fixture
def content_store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def users(alice_keys, bob_keys) -> InMemoryUserDirectory:
    directory = InMemoryUserDirectory()
    await directory.add_user("alice", alice_keys[1], token=ALICE_TOKEN)
    await directory.add_user("bob", bob_keys[1], token=BOB_TOKEN)
    return directory


@pytest_asyncio.fixture
async def registry(types_dir, content_store, validator) -> TypeRegistry:
    """Registry with types loaded and catalogs seeded."""
    reg = TypeRegistry(types_dir, content_store, validator=validator, retry_delay=0)
    reg.load_types()
    await reg.ensure_catalogs()
    return reg


@pytest.fixture
def index_manager(registry, content_store, clock) -> TypeIndexManager:
    return TypeIndexManager(registry, content_store, clock=clock)


@pytest.fixture
def service(registry, index_manager, content_store, validator, users) -> DocumentService:
    return DocumentService(
        registry=registry,
        index_manager=index_manager,
        content_store=content_store,
        validator=validator,
        cipher=X25519Cipher(),
        users=users,
    )
