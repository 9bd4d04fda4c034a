# =============================================================================
# app/exceptions.py - Custom Exceptions and Exception Handlers
# =============================================================================
# Centralized error handling for the API.
# Domain code raises typed exceptions; the handlers registered here are the
# only place that turns an error into an HTTP status and response body.
# =============================================================================

import logging
import math
from datetime import datetime, timezone
from html import escape
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class EstateAscentException(Exception):
    """
    Base exception for the EstateAscent API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "ESTATEASCENT_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | list[Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}
        self.headers = headers or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the error envelope."""
        result = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        result["timestamp"] = datetime.now(timezone.utc).isoformat()
        return result


# =============================================================================
# Request Exceptions
# =============================================================================

class ValidationError(EstateAscentException):
    """Raised when input is malformed or missing."""

    def __init__(self, message: str, details: dict[str, Any] | list[Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details,
        )


class UnauthorizedError(EstateAscentException):
    """Raised when no valid identity accompanies the request."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Sign in and send the session token as a Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(EstateAscentException):
    """Raised when the caller lacks the role or ownership required."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


class NotFoundError(EstateAscentException):
    """Raised when a referenced entity doesn't exist."""

    def __init__(self, message: str = "Resource not found", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details=details,
        )


class ConflictError(EstateAscentException):
    """Raised when a write collides with an existing unique value."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            details=details,
        )


class RateLimitExceededError(EstateAscentException):
    """Raised when a caller exhausts its rate limit window."""

    def __init__(self, reset_time: float, now: float):
        retry_after = max(1, math.ceil(reset_time - now))
        reset_iso = datetime.fromtimestamp(reset_time, tz=timezone.utc).isoformat()
        super().__init__(
            message=f"Too many requests. Please try again in {retry_after} seconds.",
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details={"reset_time": reset_iso, "retry_after": retry_after},
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Reset": reset_iso,
            },
        )
        self.reset_time = reset_time


class InternalServerError(EstateAscentException):
    """Raised when a collaborator fails in a way the client cannot fix."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(
            message=message,
            code="INTERNAL_SERVER_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


# =============================================================================
# Storage / Collaborator Exceptions
# =============================================================================

class StorageUploadError(EstateAscentException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message="Failed to upload file to storage",
            code="STORAGE_UPLOAD_ERROR",
            status_code=502,
            suggestion="Try again later or contact support if the issue persists",
        )
        self.error = error


class InvalidFileTypeError(EstateAscentException):
    """Raised when an uploaded file's content type is not allowed."""

    def __init__(self, content_type: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {content_type}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"content_type": content_type, "allowed_types": allowed},
        )


class FileTooLargeError(EstateAscentException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb},
        )


# =============================================================================
# Public Verification Page Exceptions
# =============================================================================
# The owner verification link is opened by non-technical users from an
# e-mail, so its failures render as HTML instead of the JSON envelope.

class VerificationPageError(EstateAscentException):
    """Error rendered as an HTML page for the public verification flow."""

    title = "Something went wrong"


class InvalidVerificationActionError(VerificationPageError):
    """Raised when the verification form posts an unsupported action."""

    title = "Invalid Action"

    def __init__(self, action: str | None):
        super().__init__(
            message="Invalid action",
            code="INVALID_ACTION",
            status_code=400,
            details={"action": action},
        )


class VerificationTargetNotFoundError(VerificationPageError):
    """Raised when the verification link points at an unknown property."""

    title = "Listing Not Found"

    def __init__(self, property_id: str):
        super().__init__(
            message="This listing no longer exists",
            code="NOT_FOUND",
            status_code=404,
            details={"property_id": property_id},
        )


def render_message_page(title: str, body: str, background: str = "#f9fafb", color: str = "#374151") -> str:
    """Render the small standalone HTML page used by the verification flow."""
    return f"""
        <html>
          <body style="display:flex;justify-content:center;align-items:center;height:100vh;font-family:sans-serif;background:{background};">
            <div style="text-align:center;">
              <h1 style="color:{color};">{escape(title)}</h1>
              <p>{body}</p>
            </div>
          </body>
        </html>
    """


# =============================================================================
# Exception Handlers
# =============================================================================

async def estateascent_exception_handler(
    request: Request,
    exc: EstateAscentException
) -> JSONResponse | HTMLResponse:
    """
    Convert EstateAscentException to a response.

    Returns the error envelope with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    logger.warning(
        f"API error {exc.status_code} {exc.code} on {request.url.path}: {exc.message}"
    )

    if isinstance(exc, VerificationPageError):
        return HTMLResponse(
            content=render_message_page(exc.title, escape(exc.message), background="#fef2f2", color="#991b1b"),
            status_code=exc.status_code,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers or None,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Converts pydantic errors into a 400 with one entry per offending field.
    """
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}: {details}")

    return JSONResponse(
        status_code=400,
        content=ValidationError("Validation failed", details=details).to_dict(),
    )


async def integrity_exception_handler(
    request: Request,
    exc: IntegrityError
) -> JSONResponse:
    """Map unique-constraint violations to 409."""
    logger.error(f"Database integrity error on {request.url.path}: {exc.orig}")

    error = EstateAscentException(
        message="A record with this value already exists",
        code="DUPLICATE_ENTRY",
        status_code=409,
    )
    return JSONResponse(status_code=409, content=error.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger.exception(f"Unexpected error on {request.url.path}: {exc}")

    error = EstateAscentException(
        message="An unexpected error occurred",
        code="INTERNAL_SERVER_ERROR",
        status_code=500,
    )
    return JSONResponse(status_code=500, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Install every error-to-response mapping on the application."""
    app.add_exception_handler(EstateAscentException, estateascent_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
