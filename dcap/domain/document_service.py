"""
Document lifecycle service.

Orchestrates create/update/delete/read of typed documents:
validate -> encrypt (encrypted types) -> store -> catalog upsert/remove.

Every public operation returns an OperationResult. Typed DcapError failures
are converted at this boundary; anything else is logged and propagates.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Dict, Optional

from dcap.crypto.cipher import Cipher
from dcap.domain.errors import (
    AuthError,
    DcapError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from dcap.domain.index_manager import TypeIndexManager
from dcap.domain.models import DocumentSecrets, TypeDefinition, canonical_json
from dcap.domain.registry import TypeRegistry
from dcap.domain.results import OperationResult
from dcap.storage.content_store import ContentStore
from dcap.users.directory import UserDirectory
from dcap.users.models import UserRecord
from dcap.validation.schema_validator import SchemaValidator


logger = logging.getLogger(__name__)


class DocumentService:
    """Schema-validated, optionally encrypted document operations."""

    def __init__(
        self,
        registry: TypeRegistry,
        index_manager: TypeIndexManager,
        content_store: ContentStore,
        validator: SchemaValidator,
        cipher: Cipher,
        users: UserDirectory,
    ):
        self.registry = registry
        self.index_manager = index_manager
        self.store = content_store
        self.validator = validator
        self.cipher = cipher
        self.users = users

    async def _run(self, operation: str, work: Awaitable[Any]) -> OperationResult:
        try:
            return OperationResult.success(await work)
        except DcapError as e:
            logger.warning(f"{operation} refused: {e.error_code}: {e.message}")
            return OperationResult.failure(e)
        except Exception:
            logger.exception(f"{operation} failed unexpectedly")
            raise

    # =========================================================================
    # Types
    # =========================================================================

    async def list_types(self) -> OperationResult:
        async def work():
            return [
                {
                    "title": t.title,
                    "encrypted": t.encrypted,
                    "hash": t.catalog_hash,
                }
                for t in (self.registry.get(name) for name in self.registry.list_names())
            ]
        return await self._run("list_types", work())

    async def get_type(self, type_name: str, owner: Optional[str] = None) -> OperationResult:
        """Catalog of a type (optionally only ``owner``'s entries) plus its hash."""
        async def work():
            type_def = self.registry.get(type_name)
            catalog_hash = type_def.catalog_hash
            catalog = await self.index_manager.load_catalog(type_def)
            if owner:
                catalog = catalog.filter_by_owner(owner)
            response = catalog.to_dict()
            response["hash"] = catalog_hash
            return response
        return await self._run("get_type", work())

    async def get_type_schema(self, type_name: str) -> OperationResult:
        async def work():
            return self.registry.get(type_name).schema
        return await self._run("get_type_schema", work())

    async def get_object(self, content_hash: str) -> OperationResult:
        """Raw stored bytes for any object, without type scoping."""
        return await self._run("get_object", self.store.get(content_hash))

    # =========================================================================
    # Documents
    # =========================================================================

    async def read_document(
        self,
        type_name: str,
        content_hash: str,
        acting_user: Optional[str] = None,
        secrets: Optional[DocumentSecrets] = None,
    ) -> OperationResult:
        return await self._run(
            "read_document",
            self._read(type_name, content_hash, acting_user, secrets or DocumentSecrets()),
        )

    async def create_document(
        self,
        type_name: str,
        data: Any,
        acting_user: Optional[str],
        secrets: Optional[DocumentSecrets] = None,
    ) -> OperationResult:
        return await self._run(
            "create_document",
            self._save(type_name, data, acting_user, secrets or DocumentSecrets()),
        )

    async def update_document(
        self,
        type_name: str,
        target_hash: str,
        data: Any,
        acting_user: Optional[str],
        secrets: Optional[DocumentSecrets] = None,
    ) -> OperationResult:
        return await self._run(
            "update_document",
            self._save(type_name, data, acting_user, secrets or DocumentSecrets(), target_hash),
        )

    async def delete_document(
        self,
        type_name: str,
        target_hash: str,
        acting_user: Optional[str],
    ) -> OperationResult:
        """Remove a document from its type's catalog. The stored object is kept."""
        async def work():
            type_def = self.registry.get(type_name)
            self._require_user(acting_user)
            change = await self.index_manager.remove_entry(type_def, target_hash, acting_user)
            return {"hash": target_hash, "catalog_hash": change.catalog_hash}
        return await self._run("delete_document", work())

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _require_user(acting_user: Optional[str]) -> str:
        if not acting_user:
            raise AuthError("Username not found in token")
        return acting_user

    @staticmethod
    def _check_secrets(type_def: TypeDefinition, secrets: DocumentSecrets) -> None:
        """Encrypted types need both secrets; other types accept neither."""
        if type_def.encrypted:
            if not secrets.priv_key:
                raise AuthError("Private key not included in request")
            if not secrets.password:
                raise AuthError("Password not included in request")
        elif not secrets.empty:
            raise ValidationError(
                f"Type '{type_def.title}' is not encrypted; private key and password are not accepted"
            )

    async def _lookup_user(self, username: str) -> UserRecord:
        user = await self.users.find_by_username(username)
        if user is None:
            raise NotFoundError("user", username)
        return user

    async def _save(
        self,
        type_name: str,
        data: Any,
        acting_user: Optional[str],
        secrets: DocumentSecrets,
        target_hash: Optional[str] = None,
    ) -> Dict[str, Any]:
        type_def = self.registry.get(type_name)
        self._require_user(acting_user)

        if data is None:
            raise ValidationError("Must supply data document in request body")

        outcome = self.validator.validate(type_def.schema, data)
        if not outcome.valid:
            raise ValidationError(outcome.errors, details={"errors": outcome.messages})

        self._check_secrets(type_def, secrets)

        try:
            content = canonical_json(data)
        except UnicodeEncodeError as e:
            raise ValidationError(f"Document is not encodable as UTF-8: {e.reason}") from e
        if type_def.encrypted:
            user = await self._lookup_user(acting_user)
            content = await asyncio.to_thread(
                self.cipher.encrypt, content, user.pub_key, secrets.priv_key, secrets.password
            )

        document_hash = await self.store.put(content)
        change = await self.index_manager.upsert_entry(
            type_def, document_hash, acting_user, target_hash=target_hash
        )
        return {"hash": change.document_hash, "catalog_hash": change.catalog_hash}

    async def _read(
        self,
        type_name: str,
        content_hash: str,
        acting_user: Optional[str],
        secrets: DocumentSecrets,
    ) -> Any:
        type_def = self.registry.get(type_name)
        self._check_secrets(type_def, secrets)

        catalog = await self.index_manager.load_catalog(type_def)
        if not catalog.contains(content_hash):
            raise NotFoundError("document", content_hash)

        content = await self.store.get(content_hash)
        if type_def.encrypted:
            user = await self._lookup_user(self._require_user(acting_user))
            content = await asyncio.to_thread(
                self.cipher.decrypt, content, user.pub_key, secrets.priv_key, secrets.password
            )

        try:
            return json.loads(content.decode("utf-8"))
        except ValueError as e:
            raise StoreError(f"Document {content_hash} is not valid JSON") from e
