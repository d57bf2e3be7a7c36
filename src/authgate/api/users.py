"""Users API — account creation and lookup.

- POST /users           → create an account (409 if the username is taken)
- GET  /users/{user_id} → public view of one account
"""

import uuid

from fastapi import APIRouter, Depends

from authgate.auth.dependencies import get_user_service
from authgate.schemas.auth import UserCreate, UserRead
from authgate.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """Create a new user account."""
    return await service.create_user(body.username, body.password, email=body.email)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: uuid.UUID,
    service: UserService = Depends(get_user_service),
):
    return await service.get_user(user_id)
