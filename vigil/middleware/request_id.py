"""Request ID middleware: one correlation id per request, echoed and logged."""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


def _caller_request_id(request: Request) -> str:
    """The caller's id when it is short printable ASCII, else empty."""
    value = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if len(value) > MAX_REQUEST_ID_LENGTH or not (value.isascii() and value.isprintable()):
        return ""
    return value


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id, reusing the caller's when it is usable.

    The id is stored on ``request.state.request_id`` for the error envelope
    and stays bound in the structlog context while the request is handled.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _caller_request_id(request) or str(uuid.uuid4())
        request.state.request_id = request_id

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
