"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.hsc_subjects import router as hsc_subjects_router
from routes.selected_subjects import router as selected_subjects_router

__all__ = [
    "hsc_subjects_router",
    "selected_subjects_router",
]
