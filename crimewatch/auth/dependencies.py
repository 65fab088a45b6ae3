"""
CrimeWatch - Security Dependencies

FastAPI dependencies for authentication and authorization.

IdentityMiddleware resolves the caller once per request and stores a
RequestIdentity on request.state. These dependencies only read it and
decide:

    @router.get("/reports")
    async def list_reports(identity: RequestIdentity = Depends(require_user)):
        ...

    @router.delete("/reports/{report_id}")
    async def delete_report(
        identity: RequestIdentity = Depends(require_permission(Permission.DELETE_REPORT)),
    ):
        ...

Security:
- No identity -> 401 (NotAuthenticated)
- Identity without the permission -> 403 (Forbidden)
- RBAC is deny-by-default
"""

from typing import Optional

from fastapi import Depends, Request
from pydantic import BaseModel
from sqlmodel import Session as DBSession

from crimewatch.auth.models import Role
from crimewatch.auth.schemas import UserRead
from crimewatch.auth.service import AuthService
from crimewatch.auth.sessions import SessionStore
from crimewatch.database import get_db
from crimewatch.errors import Forbidden, NotAuthenticated
from crimewatch.gateway.rbac import Permission, RBACPolicy


class RequestIdentity(BaseModel):
    """
    The caller of the current request, as resolved from its session.

    Anonymous when user is None.
    """
    user: Optional[UserRead] = None
    session_id: Optional[str] = None

    def is_authenticated(self) -> bool:
        return self.user is not None

    def current_user(self) -> Optional[UserRead]:
        return self.user

    def current_role(self) -> Optional[Role]:
        return self.user.role if self.user else None

    def can(self, permission: Permission) -> bool:
        role = self.current_role()
        return RBACPolicy().has_permission(role.value if role else None, permission)


ANONYMOUS = RequestIdentity()


def get_identity(request: Request) -> RequestIdentity:
    """Identity cached by IdentityMiddleware; anonymous if it did not run."""
    return getattr(request.state, "identity", None) or ANONYMOUS


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_auth_service(
    db: DBSession = Depends(get_db),
    session_store: SessionStore = Depends(get_session_store),
) -> AuthService:
    return AuthService(db, session_store)


async def require_user(identity: RequestIdentity = Depends(get_identity)) -> RequestIdentity:
    """
    Require an authenticated caller.

    Raises:
        NotAuthenticated: No valid session on the request
    """
    if not identity.is_authenticated():
        raise NotAuthenticated()
    return identity


def require_permission(permission: Permission):
    """
    Dependency factory enforcing a permission.

    Raises:
        NotAuthenticated: No valid session (401)
        Forbidden: Role lacks the permission (403)
    """
    async def checker(identity: RequestIdentity = Depends(require_user)) -> RequestIdentity:
        if not identity.can(permission):
            raise Forbidden(f"Permission denied: {permission.value}")
        return identity

    return checker
