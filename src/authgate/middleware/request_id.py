"""Request ID middleware: correlate every auth event logged for one request.

Learn: The ID is bound into structlog's contextvars, so login failures,
refresh rejections and guard decisions logged while handling the request
all carry it, and it is echoed back as X-Request-ID.

A caller-supplied ID is only reused when it looks like an opaque token
(letters, digits, `-`, `_`, `.`, at most 128 chars). Anything else is
replaced by a fresh UUID so clients cannot write arbitrary text into the
auth log.
"""

import re
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _VALID_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
