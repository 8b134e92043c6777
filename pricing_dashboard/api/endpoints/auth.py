"""Session endpoints: login, registration, current user and logout."""

from typing import Annotated, Dict

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.api.errors import http_error
from pricing_dashboard.core.auth import get_current_user
from pricing_dashboard.core.config import settings
from pricing_dashboard.core.database import get_async_session
from pricing_dashboard.core.exceptions import AppError
from pricing_dashboard.core.jwt import jwt_verifier
from pricing_dashboard.database.models import User
from pricing_dashboard.schemas.auth import CurrentUser, LoginRequest, RegisterRequest, UserResponse
from pricing_dashboard.services.user_service import UserService
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_user_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> UserService:
    return UserService(db_session)


def _set_session_cookie(response: Response, user: User) -> None:
    token = jwt_verifier.issue_token(user.id, user.email, user.role)
    response.set_cookie(
        key=settings.auth.cookie_name,
        value=token,
        max_age=settings.auth.token_ttl_seconds,
        httponly=True,
        secure=settings.auth.cookie_secure,
        samesite="lax",
    )


@router.post(
    "/login",
    response_model=UserResponse,
    summary="Log in with email and password",
    operation_id="login",
)
async def login(
    payload: LoginRequest,
    response: Response,
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    user = await user_service.authenticate(payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    _set_session_cookie(response, user)
    LOGGER.info("User logged in", extra={"user_id": str(user.id)})
    return UserResponse.model_validate(user)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    operation_id="register",
)
async def register(
    payload: RegisterRequest,
    response: Response,
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    try:
        user = await user_service.register(payload)
    except AppError as e:
        raise http_error(e) from e

    _set_session_cookie(response, user)
    return UserResponse.model_validate(user)


@router.get(
    "/user",
    response_model=UserResponse,
    summary="Get the logged-in user",
    operation_id="get_current_user",
)
async def current_user_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    user = await user_service.get_user(current_user.id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return UserResponse.model_validate(user)


@router.post(
    "/logout",
    summary="Clear the session cookie",
    operation_id="logout",
)
async def logout(response: Response) -> Dict[str, str]:
    response.delete_cookie(settings.auth.cookie_name)
    return {"message": "Logged out successfully"}
