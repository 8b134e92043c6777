"""Authentication schemas.

This module defines Pydantic models for login/registration payloads,
the authenticated user and user responses.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    """Credentials posted to /api/auth/login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="Plain text password")


class RegisterRequest(BaseModel):
    """Payload posted to /api/auth/register."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Plain text password")
    first_name: Optional[str] = Field(None, description="User's first name")
    last_name: Optional[str] = Field(None, description="User's last name")


class UserResponse(BaseModel):
    """User as returned to the dashboard."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID = Field(..., description="Internal user ID")
    email: EmailStr = Field(..., description="User email address")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = Field(default="user", description="User role")
    is_active: bool = True
    created_at: Optional[datetime] = None


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    id: UUID = Field(..., description="Internal user ID")
    email: EmailStr = Field(..., description="User email")
    role: str = Field(default="user", description="User role")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
