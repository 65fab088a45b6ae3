"""
CrimeWatch - Domain Exceptions

Services raise these HTTP-agnostic exceptions; the handlers registered by
register_exception_handlers() convert them into JSON responses.

Response body shape:
    {"message": "...", "errors": [{"field": "...", "message": "..."}]}
The "errors" list is only present for validation failures.
"""

from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class CrimeWatchError(Exception):
    """Base class for all domain exceptions."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"message": self.message}


class ValidationError(CrimeWatchError):
    """Malformed or missing input. Carries every failing field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, errors: List[dict], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    def to_body(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class ConflictError(CrimeWatchError):
    """Duplicate unique key."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class NotAuthenticated(CrimeWatchError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class InvalidCredentials(CrimeWatchError):
    """Unknown username or wrong password. Both cases look identical to clients."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid username or password"


class InvalidToken(CrimeWatchError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired reset token"


class Forbidden(CrimeWatchError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(CrimeWatchError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConfigurationError(Exception):
    """Unrecoverable startup configuration problem."""
    pass


def _field_errors(exc: RequestValidationError) -> List[dict]:
    """Flatten pydantic errors into [{"field", "message"}], skipping the location prefix."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(loc) or "body",
            "message": error.get("msg", "Invalid value"),
        })
    return errors


def internal_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log an unhandled exception and build the generic 500 body. Call from an except block."""
    # repr() keeps braces in the message away from loguru's formatter
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Attach domain, validation and catch-all handlers to the app.

    The catch-all runs outside every user middleware; SecurityMiddleware
    turns route failures into the same 500 earlier so CORS headers apply.
    """

    @app.exception_handler(CrimeWatchError)
    async def domain_error_handler(request: Request, exc: CrimeWatchError) -> JSONResponse:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code} "
            f"{exc.__class__.__name__}: {exc.message}"
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError(_field_errors(exc))
        logger.info(f"{request.method} {request.url.path} -> 400 {error.errors}")
        return JSONResponse(status_code=error.status_code, content=error.to_body())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        return internal_error_response(request, exc)
