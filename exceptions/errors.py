"""
Custom exception classes for the application.

Server-side errors share the AppError envelope. The selection client has its
own small hierarchy since its failures never reach an HTTP response.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SUBJECT_ALREADY_SELECTED")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (400)."""

    def __init__(
        self,
        message: str,
        code: str = "BAD_REQUEST",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


class AuthenticationError(AppError):
    """Missing or invalid credentials (401)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401
        )


class AuthorizationError(AppError):
    """Authenticated but not allowed (403)."""

    def __init__(self, message: str = "Forbidden", details: Optional[dict] = None):
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None,
        status_code: int = 409
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# SELECTED SUBJECT ERRORS
# ===================

class SubjectAlreadySelectedError(ConflictError):
    """
    Student already has this subject selected.

    Reported as 400 to match the existing frontend contract, which keys off
    the "already selected" text rather than the status code.
    """

    def __init__(self, subject_code: str, subject_name: str):
        super().__init__(
            code="SUBJECT_ALREADY_SELECTED",
            message=f'You have already selected "{subject_name}"',
            details={"subject_code": subject_code, "subject_name": subject_name},
            status_code=400
        )


# ===================
# SELECTION CLIENT ERRORS
# ===================

class SelectionStoreError(Exception):
    """
    A call to the remote selection store failed.

    Attributes:
        message: Message suitable for showing to the user
        status_code: HTTP status, if a response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SelectionAlreadyExistsError(SelectionStoreError):
    """The store already holds a selection for this natural key."""
    pass
