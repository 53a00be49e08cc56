"""Request and response schemas for the HTTP API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from dcap.domain.models import DocumentSecrets


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")

    model_config = {"json_schema_extra": {
        "example": {
            "error_code": "TYPE_NOT_FOUND",
            "message": "Type 'unknown' not found",
            "details": None,
        }
    }}


class SecretsRequest(BaseModel):
    """Secrets for encrypted types."""

    priv_key: Optional[str] = Field(None, description="PEM private key, encrypted with password")
    password: Optional[str] = Field(None, description="Passphrase for priv_key")

    def to_secrets(self) -> DocumentSecrets:
        return DocumentSecrets(priv_key=self.priv_key, password=self.password)


class DocumentWriteRequest(SecretsRequest):
    """Body for create and update."""

    data: Any = Field(None, description="Document conforming to the type schema")


class DocumentWriteResponse(BaseModel):
    """Result of a create, update or delete."""

    success: str
    hash: str = Field(..., description="Content hash of the affected document")
    catalog_hash: str = Field(..., description="Hash of the new catalog version")


class CatalogEntryResponse(BaseModel):
    created: int
    updated: int
    username: str
    link: Dict[str, str]


class CatalogResponse(BaseModel):
    """A type's catalog and the hash it is stored under."""

    documents: List[CatalogEntryResponse]
    hash: Optional[str]


class TypeSummary(BaseModel):
    title: str
    encrypted: bool
    hash: Optional[str]


class TypeListResponse(BaseModel):
    types: List[TypeSummary]
    total: int
