"""
Selected subject API routes.

All routes act on the authenticated student's own selections.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.auth import AuthenticatedUser
from models.base import MessageResponse
from models.selection import (
    SelectionCreate,
    SelectionListResponse,
    SelectionCreateResponse,
)
from services.selection_service import get_selection_service
from routes.dependencies import require_student
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/student/selected-subjects", tags=["Selected Subjects"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=SelectionListResponse)
async def list_selected_subjects(student: AuthenticatedUser = Depends(require_student)):
    """
    Get the student's selected HSC subjects, newest first.
    """
    try:
        service = get_selection_service()
        return SelectionListResponse(subjects=service.get_for_student(student.id))

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=SelectionCreateResponse)
async def add_selected_subject(
    data: SelectionCreate,
    student: AuthenticatedUser = Depends(require_student)
):
    """
    Add a single selected HSC subject.

    Raises:
        400: Missing code/name, or subject already selected
    """
    try:
        service = get_selection_service()
        record = service.add(student.id, data)

        return SelectionCreateResponse(
            message=f'Successfully added "{record.subject_name}"',
            data=record
        )

    except Exception as e:
        return handle_error(e)


@router.delete("/{selection_id}", response_model=MessageResponse)
async def delete_selected_subject(
    selection_id: str,
    student: AuthenticatedUser = Depends(require_student)
):
    """
    Delete one of the student's selected subjects.
    """
    try:
        service = get_selection_service()
        service.delete(student.id, selection_id)

        return MessageResponse(message="Selected subject deleted successfully")

    except Exception as e:
        return handle_error(e)
