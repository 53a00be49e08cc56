"""Error responses for the dcap API.

Every error body has the shape ``{"detail": {"error_code", "message",
"details"?}}``, whether it comes from a failed service result, a typed
error raised by a dependency, a malformed request, or an unexpected bug.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dcap.domain.errors import DcapError, ValidationError
from dcap.domain.results import OperationResult


logger = logging.getLogger(__name__)


def error_response(error: DcapError, status_code: Optional[int] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or error.status_code,
        content={"detail": error.to_dict()},
    )


def failure_response(result: OperationResult) -> JSONResponse:
    """JSON response for a failed service result."""
    return error_response(result.error)


async def dcap_error_handler(request: Request, exc: DcapError) -> JSONResponse:
    """Typed errors raised outside the service boundary, e.g. by auth dependencies."""
    logger.info(f"{request.method} {request.url.path} refused: {exc.error_code}: {exc.message}")
    return error_response(exc)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed request bodies or parameters (before any service call)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    error = ValidationError("Request validation failed", details={"errors": errors})
    return error_response(error, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "error_code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"request_id": getattr(request.state, "request_id", None)},
            },
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DcapError, dcap_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
