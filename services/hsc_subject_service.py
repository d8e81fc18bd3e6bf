"""
HSC subject catalog service.

Read-only access to the hsc_subjects table.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.subject import HSCSubjectResponse
from exceptions import DatabaseError
from utils.text_utils import coerce_list

logger = structlog.get_logger(__name__)


class HSCSubjectService:
    """
    HSC subject catalog.

    The catalog is small, so it is always fetched in full.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "hsc_subjects"

    def get_all(self) -> list[HSCSubjectResponse]:
        """
        Get all HSC subjects ordered by name.

        Returns:
            List of subjects

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("getting_hsc_subjects")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("name", desc=False)
                .execute()
            )

            subjects = [self._row_to_response(row) for row in (result.data or [])]

            logger.info("hsc_subjects_retrieved", count=len(subjects))

            return subjects

        except Exception as e:
            logger.error("get_hsc_subjects_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def _row_to_response(self, row: dict) -> HSCSubjectResponse:
        """
        Convert database row to HSCSubjectResponse.

        Some rows were imported with camelCase keys, so both spellings
        are accepted for the descriptive columns.
        """
        return HSCSubjectResponse(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            category=row.get("category"),
            units=row.get("units"),
            difficulty=row.get("difficulty"),
            popularity=row.get("popularity") or 0,
            prerequisites=coerce_list(row.get("prerequisites")),
            career_paths=coerce_list(row.get("career_paths")),
            recommended_for=coerce_list(row.get("recommended_for")),
            atar_contribution=row.get("atar_contribution") or row.get("atarContribution") or "Medium",
            exam_type=row.get("exam_type") or row.get("examType") or "Written",
            practical_work=row.get("practical_work") or row.get("practicalWork") or "None",
            description=row.get("description") or "",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# Singleton instance
_hsc_subject_service: Optional[HSCSubjectService] = None


def get_hsc_subject_service() -> HSCSubjectService:
    """Get or create HSCSubjectService instance."""
    global _hsc_subject_service
    if _hsc_subject_service is None:
        _hsc_subject_service = HSCSubjectService()
    return _hsc_subject_service
