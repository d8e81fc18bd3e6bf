"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,

    # Selected subjects
    SubjectAlreadySelectedError,

    # Selection client
    SelectionStoreError,
    SelectionAlreadyExistsError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "DatabaseError",

    # Selected subjects
    "SubjectAlreadySelectedError",

    # Selection client
    "SelectionStoreError",
    "SelectionAlreadyExistsError",
]
