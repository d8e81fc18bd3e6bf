"""
Business logic services.

Each service handles one domain area.
"""

from services.auth_service import AuthService, get_auth_service
from services.hsc_subject_service import HSCSubjectService, get_hsc_subject_service
from services.selection_service import SelectionService, get_selection_service

__all__ = [
    "AuthService",
    "get_auth_service",
    "HSCSubjectService",
    "get_hsc_subject_service",
    "SelectionService",
    "get_selection_service",
]
