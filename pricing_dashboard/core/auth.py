"""Authentication dependencies for FastAPI routes.

The session token is read from the session cookie first and from an
``Authorization: Bearer`` header otherwise.
"""

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.jwt import jwt_verifier
from pricing_dashboard.schemas.auth import CurrentUser
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    cookie_token = request.cookies.get(settings.auth.cookie_name)
    if cookie_token:
        return cookie_token
    if credentials:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Get the current authenticated user from the session token.

    Args:
        request: Incoming request (session cookie)
        credentials: HTTP Authorization credentials (automatically injected)

    Returns:
        CurrentUser: Authenticated user information

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    token = _extract_token(request, credentials)
    if not token:
        LOGGER.debug("No session token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = await jwt_verifier.verify_token(token)
        user = CurrentUser(id=claims.sub, email=claims.email, role=claims.role or "user")

        LOGGER.debug(f"Authenticated user: {user.id} ({user.email})")
        return user

    except (jwt.InvalidTokenError, PydanticValidationError) as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def require_role(required_role: str):
    """Create a dependency that requires a specific user role.

    Args:
        required_role: The role required for access

    Returns:
        Dependency function that checks user role
    """
    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role != required_role:
            LOGGER.warning(
                f"Access denied for user {user.id}: insufficient role '{user.role}', required '{required_role}'"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required" if required_role == "admin"
                else f"Insufficient permissions. Required role: {required_role}",
            )
        return user

    return role_checker


require_admin = require_role("admin")
