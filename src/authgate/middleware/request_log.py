"""Request logging middleware — one `request.received` event per request.

Learn: Runs before any guard. It classifies the route with the same table
the API-key guard uses and logs the class alongside method and path, so
exempt requests (e.g. logout without an API key) are visible in the logs.
Nothing is attached to the request; the classification is recomputed
wherever it is needed.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from authgate.routing import classify_route

logger = structlog.get_logger()


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Emit a request-received event for every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        route_class = classify_route(request.method, request.url.path)
        logger.info(
            "request.received",
            method=request.method,
            path=request.url.path,
            route_class=route_class.value,
        )
        return await call_next(request)
