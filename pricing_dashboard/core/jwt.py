"""Session token issuing and verification.

Tokens are HS256 JWTs signed with ``JWT_SECRET``. They are handed out as an
http-only cookie by the auth endpoints and are also accepted as a Bearer token.
"""

import time
from typing import Any, Dict, Optional, Union
from uuid import UUID

import jwt
from pydantic import BaseModel

from pricing_dashboard.core.config import settings
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

ALGORITHM = "HS256"


class JWTClaims(BaseModel):
    """Decoded session token claims."""

    sub: str  # User ID
    email: str
    role: str = "user"
    exp: int  # Expiry timestamp
    iat: int  # Issued at timestamp
    iss: str  # Issuer


class JWTVerifier:
    """Issues and verifies session tokens."""

    def __init__(self, jwt_secret: str, issuer: str, ttl_seconds: int):
        """Initialize JWT verifier.

        Args:
            jwt_secret: Shared secret for HS256 signing
            issuer: Expected ``iss`` claim
            ttl_seconds: Lifetime of issued tokens
        """
        self.jwt_secret = jwt_secret
        self.expected_issuer = issuer
        self.ttl_seconds = ttl_seconds

        LOGGER.info(f"JWT verifier initialized for issuer: {self.expected_issuer}")

    def issue_token(self, user_id: Union[str, UUID], email: str, role: str, now: Optional[int] = None) -> str:
        """Create a signed session token for a user."""
        issued_at = int(now if now is not None else time.time())
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
            "iss": self.expected_issuer,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=ALGORITHM)

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a session token.

        Args:
            token: JWT from the session cookie or Authorization header

        Returns:
            Decoded and validated JWT claims

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[ALGORITHM],
                issuer=self.expected_issuer,
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_iss": True,
                    "require": ["sub", "email", "exp", "iat", "iss"],
                },
            )

            claims = JWTClaims(**payload)

            LOGGER.debug(f"Successfully verified token for user: {claims.sub}")
            return claims

        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidSignatureError as e:
            LOGGER.warning(f"Invalid signature: {e}")
            raise jwt.InvalidTokenError("Invalid token signature") from e
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token: {e}")
            raise


jwt_verifier = JWTVerifier(
    jwt_secret=settings.auth.jwt_secret,
    issuer=settings.auth.jwt_issuer,
    ttl_seconds=settings.auth.token_ttl_seconds,
)
