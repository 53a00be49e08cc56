"""
Request ID middleware.

Accepts a client-supplied X-Request-ID or generates one, exposes it on
``request.state`` and on the response, and binds it to the logging context
for the duration of the request.
"""

from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from dcap.core.logging import request_id_var


REQUEST_ID_HEADER = "X-Request-ID"
_MAX_CLIENT_ID_LENGTH = 128


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID that also appears in every log line it causes."""

    async def dispatch(self, request: Request, call_next):
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        if supplied and len(supplied) <= _MAX_CLIENT_ID_LENGTH and supplied.isprintable():
            request_id = supplied
        else:
            request_id = uuid4().hex

        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
