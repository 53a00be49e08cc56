"""Error taxonomy for catalog and document operations."""

from typing import Any, Dict, Optional


class DcapError(Exception):
    """Base class for typed catalog/document errors."""

    def __init__(
        self,
        error_code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(DcapError):
    """Unknown type, document, update/delete target or user."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            error_code=f"{resource_type.upper()}_NOT_FOUND",
            message=f"{resource_type.title()} '{resource_id}' not found",
            status_code=404,
            details=details,
        )


class ValidationError(DcapError):
    """Payload failed schema validation, or the request is malformed."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class AuthError(DcapError):
    """Missing credentials or secrets."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="AUTH_ERROR",
            message=message,
            status_code=401,
            details=details,
        )


class PermissionDeniedError(DcapError):
    """Acting user does not own the targeted catalog entry."""

    def __init__(
        self,
        message: str = "Invalid username for this document",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="PERMISSION_DENIED",
            message=message,
            status_code=403,
            details=details,
        )


class ConflictError(DcapError):
    """Operation conflicts with current catalog state."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="CONFLICT",
            message=message,
            status_code=409,
            details=details,
        )


class ConfigError(DcapError):
    """Malformed or misnamed type definition. Fatal at startup."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="CONFIG_ERROR",
            message=message,
            status_code=500,
            details=details,
        )


class CryptoError(DcapError):
    """Encryption or decryption failed (bad key material or passphrase)."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="CRYPTO_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class StoreError(DcapError):
    """Content store or durable pointer write failed."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="STORE_ERROR",
            message=message,
            status_code=502,
            details=details,
        )
