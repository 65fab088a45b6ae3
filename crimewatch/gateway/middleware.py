"""
CrimeWatch - Request Middleware

- SecurityMiddleware: request ID, security headers, access log
- IdentityMiddleware: resolves the caller's session before any handler runs

IdentityMiddleware never rejects a request; route dependencies decide.
"""

import time
import uuid
from typing import Callable, Optional

from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from crimewatch.auth.dependencies import ANONYMOUS, RequestIdentity
from crimewatch.auth.models import User
from crimewatch.auth.schemas import UserRead
from crimewatch.config import settings
from crimewatch.errors import internal_error_response


SESSION_HEADER = "X-Session-ID"


def get_session_ref(request: Request) -> Optional[str]:
    """Session reference from the X-Session-ID header, falling back to the cookie."""
    return request.headers.get(SESSION_HEADER) or request.cookies.get(settings.SESSION_COOKIE_NAME)


class SecurityMiddleware(BaseHTTPMiddleware):
    """
    Security-focused middleware for all incoming requests.

    Responsibilities:
    1. Inject X-Request-ID header for tracing
    2. Add security headers to response
    3. Log method, path, status and duration
    4. Convert unhandled exceptions into the generic 500 response
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            # Answer here so the response still passes back through CORSMiddleware
            response = internal_error_response(request, exc)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cache-Control"] = "no-store"

        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{duration_ms:.1f}ms request_id={request_id}"
        )
        return response


class IdentityMiddleware(BaseHTTPMiddleware):
    """
    Resolve the session reference into a RequestIdentity.

    The result is cached on request.state.identity for the lifetime of
    the request. Store and database lookups run on the threadpool.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        session_id = get_session_ref(request)
        identity = ANONYMOUS
        if session_id:
            identity = await run_in_threadpool(self._resolve, request, session_id)

        request.state.identity = identity
        return await call_next(request)

    @staticmethod
    def _resolve(request: Request, session_id: str) -> RequestIdentity:
        record = request.app.state.session_store.get(session_id)
        if record is None:
            return ANONYMOUS

        db = request.app.state.db_session_factory()
        try:
            user = db.get(User, record.user_id)
            if user is None:
                return ANONYMOUS
            return RequestIdentity(user=UserRead.model_validate(user), session_id=record.session_id)
        finally:
            db.close()
