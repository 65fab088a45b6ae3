"""
CrimeWatch - Admin API Routes

Admin-only user management:
- GET  /api/users   - List users (password hashes never included)
- POST /api/users   - Create a user with any role

Permissions come from the RBAC policy (users:read, users:create).
"""

from typing import List

from fastapi import APIRouter, Depends, status
from loguru import logger

from crimewatch.auth.dependencies import RequestIdentity, get_auth_service, require_permission
from crimewatch.auth.schemas import CreateUserRequest, UserRead
from crimewatch.auth.service import AuthService
from crimewatch.gateway.rbac import Permission


router = APIRouter(prefix="/users", tags=["admin"])


@router.get("", response_model=List[UserRead], summary="List users")
async def list_users(
    admin: RequestIdentity = Depends(require_permission(Permission.READ_USERS)),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.list_users()


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create new user (admin only)",
)
async def create_user(
    body: CreateUserRequest,
    admin: RequestIdentity = Depends(require_permission(Permission.CREATE_USERS)),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Same validation as self-registration. Does not start a session for
    the new user.
    """
    user = await auth.register(body)
    logger.info(f"Admin id={admin.user.id} created user id={user.id} role={user.role.value}")
    return user
