"""
CrimeWatch - Authentication Request/Response Schemas

Pydantic models for API request validation and response serialization.
Separates API contracts from database models; these are the only input gate.

JSON uses camelCase (newPassword, createdAt); snake_case names are
accepted on input as well.
"""

from datetime import datetime
from typing import Optional
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from crimewatch.auth.models import Role
from crimewatch.auth.password import BCRYPT_MAX_BYTES


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
MIN_PASSWORD_LENGTH = 6


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def check_password(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return v


class RegisterRequest(CamelModel):
    """Request body for POST /api/register."""
    username: str = Field(..., min_length=1, max_length=64)
    email: str
    password: str
    role: Role = Field(default=Role.REPORTER)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("email")
    @classmethod
    def email_format(cls, v):
        """Basic email format validation (allows .local for development)."""
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_length(cls, v):
        return check_password(v)


class CreateUserRequest(RegisterRequest):
    """Request body for POST /api/users (admin only). Same rules as registration."""
    pass


class LoginRequest(CamelModel):
    """Request body for POST /api/login."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v):
        # Stored usernames are stripped at registration
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


class UserRead(CamelModel):
    """Public view of a user. Never carries the password hash."""
    id: int
    username: str
    email: str
    role: Role
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PasswordResetRequest(CamelModel):
    """Request body for POST /api/auth/request-reset."""
    username: str = Field(..., min_length=1)


class PasswordResetIssued(CamelModel):
    """Response body for a reset request. token is only set in development mode."""
    message: str
    token: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    """Request body for POST /api/auth/reset-password."""
    token: Optional[str] = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v):
        return check_password(v)


class MessageResponse(BaseModel):
    message: str
