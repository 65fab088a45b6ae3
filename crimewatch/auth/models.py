"""
CrimeWatch - Authentication Database Models

SQLModel-based models for users, durable sessions and password reset tokens.
Uses PostgreSQL for production, SQLite for local development.

Security:
- Passwords stored as bcrypt hashes only
- Reset tokens stored as SHA-256 hashes only
- Sessions are server-controlled for immediate revocation
- All timestamps are naive UTC
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum


def utcnow() -> datetime:
    """Current UTC time without tzinfo (SQLite drops it anyway)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Role(str, Enum):
    """
    User roles for RBAC.

    Closed set; anything else is rejected by the request schemas.
    """
    REPORTER = "reporter"
    ADMIN = "admin"


class User(SQLModel, table=True):
    """
    User account for authentication.

    Attributes:
        id: Autoincrement identifier
        username: Login identifier (unique, indexed)
        email: Contact address for notifications and reset delivery
        password_hash: bcrypt hash (never store plaintext)
        role: RBAC role determining permissions
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="Unique login name"
    )
    email: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="User email address"
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="bcrypt password hash"
    )
    role: Role = Field(
        default=Role.REPORTER,
        sa_column=Column(SQLEnum(Role), nullable=False, default=Role.REPORTER),
        description="User role for RBAC"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow),
    )


class Session(SQLModel, table=True):
    """
    Durable server-side session (used when SESSION_STORE=database).

    Attributes:
        session_id: Opaque unguessable token held by the client
        user_id: Owning user
        issued_at: Session creation timestamp
        expires_at: Fixed expiry (issued_at + SESSION_EXPIRE_DAYS)
        last_seen: Last activity timestamp
        is_valid: False after logout or revocation
        ip_address: Client IP for audit
        user_agent: Client user-agent for audit
    """
    __tablename__ = "sessions"

    session_id: str = Field(
        sa_column=Column(String(64), primary_key=True),
        description="Opaque session identifier"
    )
    user_id: int = Field(
        foreign_key="users.id",
        nullable=False,
        index=True,
    )
    issued_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
    )
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    last_seen: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
    )
    is_valid: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
    )
    ip_address: Optional[str] = Field(default=None, sa_column=Column(String(45), nullable=True))
    user_agent: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))


class PasswordResetToken(SQLModel, table=True):
    """
    Single-use password reset grant.

    Attributes:
        token_hash: SHA-256 hex of the opaque token (plaintext never stored)
        expires_at: Token is rejected after this time
        used_at: Set on successful consumption; a used token is rejected
    """
    __tablename__ = "password_reset_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    token_hash: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
    )
    issued_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
    )
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
