"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: The API-key gate is not attached here. It is an app-level
dependency (see main.create_app) that consults routing.ROUTE_TABLE, so
exemptions live in one table instead of being scattered over routers.
Token guards are declared per route in each router module.
"""

from fastapi import APIRouter

from authgate.api.auth import router as auth_router
from authgate.api.health import router as health_router
from authgate.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
