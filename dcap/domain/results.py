"""Discriminated result returned by document service operations."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from dcap.domain.errors import DcapError


@dataclass
class OperationResult:
    """Either a success carrying ``value`` or a failure carrying ``error``."""
    ok: bool
    value: Any = None
    error: Optional[DcapError] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: DcapError) -> "OperationResult":
        return cls(ok=False, error=error)

    @property
    def error_code(self) -> Optional[str]:
        return self.error.error_code if self.error else None

    @property
    def status_code(self) -> int:
        return self.error.status_code if self.error else 200

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "value": self.value}
        return {"ok": False, "error": self.error.to_dict()}
