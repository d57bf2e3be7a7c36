"""Route classification table.

Learn: Some routes are exempt from the API-key check. Instead of a
middleware setting a flag on the request for the guard to read later,
the policy is a plain lookup table keyed by (method, path). The API-key
guard and the request logger both consult it, and nothing is ever written
onto the request.

Logout is exempt so a client holding a revoked or rotated API key can
still clean up its session — it still needs a valid bearer token.
"""

from enum import Enum


class RouteClass(str, Enum):
    STANDARD = "standard"
    API_KEY_EXEMPT = "api_key_exempt"


ROUTE_TABLE: dict[tuple[str, str], RouteClass] = {
    ("POST", "/auth/logout"): RouteClass.API_KEY_EXEMPT,
    ("GET", "/health"): RouteClass.API_KEY_EXEMPT,
}


def classify_route(method: str, path: str) -> RouteClass:
    """Look up a request's class. Unknown routes are STANDARD."""
    normalized = path.rstrip("/") or "/"
    return ROUTE_TABLE.get((method.upper(), normalized), RouteClass.STANDARD)
