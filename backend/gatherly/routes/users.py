"""
Gatherly Backend: User Route Handlers
=======================================

What:  Registration (POST /api/users) and the acting user (GET /api/users/me).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.api.principal import get_current_user
from gatherly.database import get_db_session
from gatherly.models.user import User
from gatherly.schemas.common import ErrorResponse
from gatherly.schemas.user import UserParams, UserResponse
from gatherly.services.register_user import RegisterUser

router = APIRouter(prefix="/api", tags=["Users"])


@router.post(
    "/users",
    status_code=201,
    response_model=UserResponse,
    responses={
        409: {"description": "E-mail already registered", "model": ErrorResponse},
        422: {"description": "User is invalid", "model": ErrorResponse},
    },
    summary="Register a household member",
)
async def register_user(
    params: UserParams,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await RegisterUser.call(db=db, params=params)
    return UserResponse.model_validate(user)


@router.get(
    "/users/me",
    response_model=UserResponse,
    responses={401: {"description": "No acting user", "model": ErrorResponse}},
    summary="The acting user",
)
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
