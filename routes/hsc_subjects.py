"""
HSC subject catalog routes.
"""

from fastapi import APIRouter, Depends
import structlog

from models.auth import AuthenticatedUser
from models.subject import HSCSubjectListResponse
from services.hsc_subject_service import get_hsc_subject_service
from routes.dependencies import get_current_user
from routes.selected_subjects import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/student/hsc-subjects", tags=["HSC Subjects"])


@router.get("", response_model=HSCSubjectListResponse)
async def list_hsc_subjects(user: AuthenticatedUser = Depends(get_current_user)):
    """
    Get all HSC subjects, ordered by name.

    Any signed-in user may browse the catalog.
    """
    try:
        service = get_hsc_subject_service()
        return HSCSubjectListResponse(subjects=service.get_all())

    except Exception as e:
        return handle_error(e)
