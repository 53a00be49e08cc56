"""Typed catalog models.

TypeDefinition is loaded from a type configuration record. TypeIndex is the
per-type catalog persisted as one content-addressed JSON object:

    {"documents": [{"created": 1700000000000, "updated": 1700000000000,
                    "username": "alice", "link": {"/": "<sha256>"}}]}
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


def canonical_json(value: Any) -> bytes:
    """Serialize a JSON value so equal values always produce equal bytes."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


@dataclass
class TypeDefinition:
    """A declared document type and its current catalog pointer."""
    title: str
    schema: Dict[str, Any]
    catalog_hash: Optional[str] = None
    source_path: Optional[Path] = None

    @property
    def encrypted(self) -> bool:
        return self.schema.get("encrypted") is True

    def to_record(self) -> Dict[str, Any]:
        """Durable config record: the schema plus the pointer under ``hash``."""
        record = dict(self.schema)
        if self.catalog_hash:
            record["hash"] = self.catalog_hash
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any], source_path: Optional[Path] = None) -> "TypeDefinition":
        schema = {k: v for k, v in record.items() if k != "hash"}
        return cls(
            title=schema.get("title"),
            schema=schema,
            catalog_hash=record.get("hash"),
            source_path=source_path,
        )


@dataclass
class IndexEntry:
    """One catalog record pointing at a stored document."""
    created: int
    updated: int
    owner: str
    content_link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "username": self.owner,
            "link": {"/": self.content_link},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndexEntry":
        return cls(
            created=int(data["created"]),
            updated=int(data["updated"]),
            owner=data["username"],
            content_link=data["link"]["/"],
        )


@dataclass
class TypeIndex:
    """Ordered catalog of entries for one type."""
    entries: List[IndexEntry] = field(default_factory=list)

    def find(self, content_link: str) -> Optional[int]:
        """Position of the entry linking to ``content_link``, or None."""
        for position, entry in enumerate(self.entries):
            if entry.content_link == content_link:
                return position
        return None

    def contains(self, content_link: str) -> bool:
        return self.find(content_link) is not None

    def filter_by_owner(self, owner: str) -> "TypeIndex":
        return TypeIndex(entries=[e for e in self.entries if e.owner == owner])

    def to_dict(self) -> Dict[str, Any]:
        return {"documents": [entry.to_dict() for entry in self.entries]}

    def to_bytes(self) -> bytes:
        return canonical_json(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeIndex":
        # Null slots are holes left by older soft deletes.
        documents = data.get("documents") or []
        return cls(entries=[IndexEntry.from_dict(d) for d in documents if d])

    @classmethod
    def from_bytes(cls, raw: bytes) -> "TypeIndex":
        return cls.from_dict(json.loads(raw.decode("utf-8")))


@dataclass
class CatalogChange:
    """Outcome of a committed catalog mutation."""
    document_hash: str
    catalog_hash: str
    entry: IndexEntry


@dataclass
class DocumentSecrets:
    """Secrets required to read or write documents of an encrypted type."""
    priv_key: Optional[str] = None
    password: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.priv_key and not self.password
