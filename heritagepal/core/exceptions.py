"""Application error hierarchy and the FastAPI handlers that render it.

Services raise these; routers let them propagate and the handlers below turn
them into ``{"detail": ...}`` JSON responses with the matching status code.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from heritagepal.core.logging import get_logger


logger = get_logger(__name__)


class HeritagePalError(Exception):
    """Base error; ``status_code`` decides the HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, debug_info: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.debug_info = debug_info or {}


class ValidationError(HeritagePalError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, errors: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []


class AuthenticationError(HeritagePalError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(HeritagePalError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(HeritagePalError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(HeritagePalError):
    status_code = status.HTTP_409_CONFLICT


class PayloadTooLargeError(HeritagePalError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE


class CorruptDataError(HeritagePalError):
    """Stored data could not be decoded (e.g. quiz questions that are not JSON)."""


class PersistenceError(HeritagePalError):
    """A write against the store failed; ``artifact`` names what was being saved."""

    def __init__(self, artifact: str, *, cause: Optional[BaseException] = None):
        super().__init__(
            f"Failed to save {artifact}",
            debug_info={"cause": repr(cause)} if cause else None,
        )
        self.artifact = artifact


class GenerationError(HeritagePalError):
    """The generation service itself failed (network, auth, quota)."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str = "Content generation failed", **kwargs):
        super().__init__(message, **kwargs)


class UpstreamAuthError(HeritagePalError):
    """Supabase Auth rejected or failed a request we proxied to it."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.status_code = status_code


async def _handle_app_error(request: Request, exc: HeritagePalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
            exc.debug_info,
        )
    else:
        logger.info(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
    body: dict[str, Any] = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        fields.append(".".join(loc) or "body")
    message = "Invalid request: " + ", ".join(sorted(set(fields)))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "errors": [e.get("msg") for e in exc.errors()]},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HeritagePalError, _handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]


__all__ = [
    "HeritagePalError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "PayloadTooLargeError",
    "CorruptDataError",
    "PersistenceError",
    "GenerationError",
    "UpstreamAuthError",
    "register_exception_handlers",
]
