"""
CrimeWatch - Authentication Package

- Server-side sessions (durable or in-memory store)
- bcrypt password hashing
- Single-use password reset tokens
- RBAC with deny-by-default
"""

from crimewatch.auth.models import User, Session, Role
from crimewatch.auth.dependencies import RequestIdentity, require_user, require_permission

__all__ = [
    "User",
    "Session",
    "Role",
    "RequestIdentity",
    "require_user",
    "require_permission",
]
