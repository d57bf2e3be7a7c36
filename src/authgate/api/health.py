"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
database is reachable. Classified API-key exempt in routing.py so load
balancers can probe it without credentials, which is also why a failed
check only says "error": the cause goes to the log, not the response.
"""

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text

from authgate import __version__

router = APIRouter()
logger = structlog.get_logger()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        logger.exception("health.database_unreachable")
        checks["database"] = "error"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
