"""
CrimeWatch - Authentication Routes

API endpoints for authentication:
- POST /api/register                - Create account and start a session
- POST /api/login                   - Authenticate and create session
- POST /api/logout                  - Invalidate session
- GET  /api/user                    - Current user
- POST /api/auth/request-reset      - Issue a password reset token
- POST /api/auth/reset-password     - Consume a token and set a new password

Sessions are handed to the client as an HTTP-only cookie and, for
non-browser clients, in the X-Session-ID response header.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status

from crimewatch.auth.dependencies import (
    RequestIdentity,
    get_auth_service,
    require_user,
)
from crimewatch.auth.schemas import (
    LoginRequest,
    MessageResponse,
    PasswordResetIssued,
    PasswordResetRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserRead,
)
from crimewatch.auth.service import AuthService
from crimewatch.auth.sessions import SessionRecord
from crimewatch.config import settings
from crimewatch.gateway.middleware import SESSION_HEADER, get_session_ref
from crimewatch.services.notifications import EmailNotifier, get_notifier


router = APIRouter(tags=["authentication"])


def get_client_ip(request: Request) -> str:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str:
    """Extract user agent from request."""
    return request.headers.get("User-Agent", "unknown")[:512]


def set_session_cookie(response: Response, session: SessionRecord) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_id,
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    response.headers[SESSION_HEADER] = session.session_id


def open_session(request: Request, response: Response, auth: AuthService, user: UserRead) -> None:
    session = auth.start_session(
        user.id,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    set_session_cookie(response, session)


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register and log in",
)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Create an account, then start a session for it right away so the
    client does not need a separate login round trip.
    """
    user = await auth.register(body)
    open_session(request, response, auth, user)
    return user


@router.post("/login", response_model=UserRead, summary="Authenticate user and create session")
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Raises:
        401: Invalid credentials (same response for unknown user and wrong password)
    """
    user = await auth.authenticate(body.username, body.password)
    open_session(request, response, auth, user)
    return user


@router.post("/logout", response_model=MessageResponse, summary="Invalidate current session")
async def logout(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """Always succeeds, with or without a live session."""
    auth.logout(get_session_ref(request))
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=UserRead, summary="Get current user information")
async def current_user(identity: RequestIdentity = Depends(require_user)):
    return identity.current_user()


@router.post(
    "/auth/request-reset",
    response_model=PasswordResetIssued,
    response_model_exclude_none=True,
    summary="Request a password reset token",
)
async def request_password_reset(
    body: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    auth: AuthService = Depends(get_auth_service),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Issue a single-use reset token.

    The token is emailed to the account address. With EXPOSE_RESET_TOKENS
    enabled (development and tests only) it is also returned in the body.
    """
    user, token = auth.request_password_reset(body.username)
    background_tasks.add_task(notifier.send_password_reset, user.email, user.username, token)

    if settings.EXPOSE_RESET_TOKENS:
        return PasswordResetIssued(message="Reset token generated", token=token)
    return PasswordResetIssued(message="Check your email for reset instructions")


@router.post("/auth/reset-password", response_model=MessageResponse, summary="Reset password with a token")
async def reset_password(
    body: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Raises:
        400: New password too short
        401: Token missing, unknown, used or expired
    """
    await auth.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password has been reset")
