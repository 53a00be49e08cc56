"""HTTP middleware."""

from dcap.api.middleware.logging import LoggingMiddleware
from dcap.api.middleware.request_id import RequestIDMiddleware

__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
