"""
Selected subject service.

Stores each student's selected HSC subjects. The table has a unique
constraint on (student_id, subject_code, subject_name); the service checks
first and also maps a constraint violation to the same error, since two
sessions of one student can race past the check.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from models.selection import SelectionCreate, SelectionRecord
from exceptions import (
    DatabaseError,
    ValidationError,
    SubjectAlreadySelectedError,
)
from utils.text_utils import clean_text

logger = structlog.get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class SelectionService:
    """
    Selected subject business logic.

    Every operation is scoped to one student.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "selected_subjects"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_for_student(self, student_id: str) -> list[SelectionRecord]:
        """
        Get a student's selections, newest first.

        Args:
            student_id: Authenticated student's UUID

        Returns:
            List of selections

        Raises:
            DatabaseError: If the query fails
        """
        logger.info("getting_selected_subjects", student_id=student_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("student_id", student_id)
                .order("selected_at", desc=True)
                .execute()
            )

            selections = [self._row_to_response(row) for row in (result.data or [])]

            logger.info(
                "selected_subjects_retrieved",
                student_id=student_id,
                count=len(selections)
            )

            return selections

        except Exception as e:
            logger.error("get_selected_subjects_failed", student_id=student_id, error=str(e))
            raise DatabaseError("select", str(e))

    def find_existing(
        self,
        student_id: str,
        subject_code: str,
        subject_name: str
    ) -> Optional[SelectionRecord]:
        """
        Find a student's selection by natural key.

        Returns:
            SelectionRecord if found, None otherwise
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("student_id", student_id)
                .eq("subject_code", subject_code)
                .eq("subject_name", subject_name)
                .limit(1)
                .execute()
            )

            if not result.data:
                return None

            return self._row_to_response(result.data[0])

        except Exception as e:
            logger.error(
                "check_existing_selection_failed",
                student_id=student_id,
                subject_code=subject_code,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def add(self, student_id: str, data: SelectionCreate) -> SelectionRecord:
        """
        Add a selected subject.

        Args:
            student_id: Authenticated student's UUID
            data: Subject to select

        Returns:
            Created SelectionRecord

        Raises:
            ValidationError: If code or name is missing
            SubjectAlreadySelectedError: If the student already selected it
            DatabaseError: If the insert fails
        """
        subject_code = clean_text(data.subject_code)
        subject_name = clean_text(data.subject_name)

        if not subject_code or not subject_name:
            raise ValidationError("subject_code and subject_name are required")

        logger.info(
            "adding_selected_subject",
            student_id=student_id,
            subject_code=subject_code,
            subject_name=subject_name
        )

        if self.find_existing(student_id, subject_code, subject_name):
            logger.info(
                "subject_already_selected",
                student_id=student_id,
                subject_code=subject_code
            )
            raise SubjectAlreadySelectedError(subject_code, subject_name)

        insert_data = {
            "student_id": student_id,
            "subject_code": subject_code,
            "subject_name": subject_name,
            "category": clean_text(data.category),
            "reasoning": clean_text(data.reasoning),
            "selected_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )

        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                logger.info(
                    "subject_already_selected_on_insert",
                    student_id=student_id,
                    subject_code=subject_code
                )
                raise SubjectAlreadySelectedError(subject_code, subject_name)
            logger.error(
                "add_selected_subject_failed",
                student_id=student_id,
                subject_code=subject_code,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", "no row returned")

        record = self._row_to_response(result.data[0])

        logger.info(
            "selected_subject_added",
            student_id=student_id,
            selection_id=record.id,
            subject_code=subject_code
        )

        return record

    def delete(self, student_id: str, selection_id: str) -> bool:
        """
        Delete one of the student's selections.

        Deleting a row that is already gone succeeds, so a retried or
        duplicated delete never reports a failure for a state that holds.

        Args:
            student_id: Authenticated student's UUID
            selection_id: Selection UUID

        Returns:
            True when the delete was issued

        Raises:
            ValidationError: If selection_id is blank
            DatabaseError: If the delete fails
        """
        if not selection_id or not selection_id.strip():
            raise ValidationError("Subject ID is required")

        logger.info(
            "deleting_selected_subject",
            student_id=student_id,
            selection_id=selection_id
        )

        try:
            (
                self.db.table(self.table)
                .delete()
                .eq("id", selection_id)
                .eq("student_id", student_id)
                .execute()
            )

        except Exception as e:
            logger.error(
                "delete_selected_subject_failed",
                student_id=student_id,
                selection_id=selection_id,
                error=str(e)
            )
            raise DatabaseError("delete", str(e))

        logger.info("selected_subject_deleted", selection_id=selection_id)

        return True

    def _row_to_response(self, row: dict) -> SelectionRecord:
        """Convert database row to SelectionRecord."""
        return SelectionRecord(
            id=row["id"],
            student_id=row.get("student_id"),
            subject_code=row["subject_code"],
            subject_name=row["subject_name"],
            category=row.get("category"),
            reasoning=row.get("reasoning"),
            selected_at=row.get("selected_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


# Singleton instance
_selection_service: Optional[SelectionService] = None


def get_selection_service() -> SelectionService:
    """Get or create SelectionService instance."""
    global _selection_service
    if _selection_service is None:
        _selection_service = SelectionService()
    return _selection_service
