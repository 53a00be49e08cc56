"""
Access logging for the dcap API.

One line per completed request, with method, path, status and duration as
structured ``extra`` fields. Client errors (refused writes, unknown types)
log at WARNING, server errors at ERROR.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


PROCESS_TIME_HEADER = "X-Process-Time"


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request's outcome and sets the X-Process-Time header."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        fields = {"method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                f"{request.method} {request.url.path} failed after {duration_ms:.2f}ms",
                extra={**fields, "duration_ms": round(duration_ms, 2)},
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.log(
            _level_for(response.status_code),
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.2f}ms)",
            extra={
                **fields,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        response.headers[PROCESS_TIME_HEADER] = f"{duration_ms:.2f}ms"
        return response
