"""
Selected subject schemas.

A student's selection is keyed by the natural key (subject_code, subject_name).
Server rows are SelectionRecord; the client holds PendingSelectionRecord while
a create request is in flight.
"""

from pydantic import Field, field_validator
from typing import NamedTuple, Optional, Union
from datetime import datetime
from uuid import uuid4

from models.base import BaseSchema, TimestampMixin


TEMP_ID_PREFIX = "temp-"


class NaturalKey(NamedTuple):
    """Business identity of a selectable subject."""
    code: str
    name: str

    def __str__(self) -> str:
        return f"{self.code}-{self.name}"


def new_temp_id() -> str:
    """Temporary id for a pending record. Server ids never carry the prefix."""
    return f"{TEMP_ID_PREFIX}{uuid4()}"


def is_temp_id(record_id: str) -> bool:
    return record_id.startswith(TEMP_ID_PREFIX)


# ===================
# CLIENT-SIDE SCHEMAS
# ===================

class SelectableItem(BaseSchema):
    """
    Something the student can toggle into their selection.

    Usually built from an HSC subject or an AI recommendation row.
    """

    code: str = Field(..., min_length=1, description="Subject code")
    name: str = Field(..., min_length=1, description="Subject name")
    category: Optional[str] = Field(None, description="Subject category")
    reasoning: Optional[str] = Field(None, description="Why it was chosen")

    @property
    def key(self) -> NaturalKey:
        return NaturalKey(self.code, self.name)

    @classmethod
    def from_subject(cls, subject: dict) -> "SelectableItem":
        """
        Build from a catalog or recommendation dict.

        Recommendation rows name the subject under "recommend_subject" and
        sometimes capitalise "Reasoning".
        """
        return cls(
            code=subject.get("code") or "",
            name=subject.get("recommend_subject") or subject.get("name") or "",
            category=subject.get("category"),
            reasoning=subject.get("reasoning") or subject.get("Reasoning"),
        )


class PendingSelectionRecord(BaseSchema):
    """Optimistic stand-in for a selection whose create is in flight."""

    id: str = Field(default_factory=new_temp_id, description="Temporary id")
    subject_code: str
    subject_name: str
    category: Optional[str] = None
    reasoning: Optional[str] = None

    @field_validator("id")
    @classmethod
    def id_is_temporary(cls, v: str) -> str:
        if not is_temp_id(v):
            raise ValueError(f"pending id must start with {TEMP_ID_PREFIX!r}")
        return v

    @property
    def key(self) -> NaturalKey:
        return NaturalKey(self.subject_code, self.subject_name)

    @classmethod
    def for_item(cls, item: SelectableItem) -> "PendingSelectionRecord":
        return cls(
            subject_code=item.code,
            subject_name=item.name,
            category=item.category,
            reasoning=item.reasoning,
        )


# ===================
# SERVER SCHEMAS
# ===================

class SelectionCreate(BaseSchema):
    """
    Add a selected subject.

    Code and name are checked by the service so a blank value gets the
    400 response the frontend expects rather than a 422.
    """

    subject_code: Optional[str] = Field(None, max_length=50, description="Subject code")
    subject_name: Optional[str] = Field(None, max_length=200, description="Subject name")
    category: Optional[str] = Field(None, max_length=100, description="Subject category")
    reasoning: Optional[str] = Field(None, description="Free-text rationale")

    @classmethod
    def from_item(cls, item: SelectableItem) -> "SelectionCreate":
        return cls(
            subject_code=item.code,
            subject_name=item.name,
            category=item.category,
            reasoning=item.reasoning,
        )


class SelectionRecord(BaseSchema, TimestampMixin):
    """A persisted selection row."""

    id: str = Field(..., description="Selection UUID")
    student_id: Optional[str] = Field(None, description="Owning student")
    subject_code: str = Field(..., description="Subject code")
    subject_name: str = Field(..., description="Subject name")
    category: Optional[str] = Field(None, description="Subject category")
    reasoning: Optional[str] = Field(None, description="Free-text rationale")
    selected_at: Optional[datetime] = Field(None, description="When it was selected")

    @property
    def key(self) -> NaturalKey:
        return NaturalKey(self.subject_code, self.subject_name)


# One entry in the reconciler's local view
LocalSelection = Union[SelectionRecord, PendingSelectionRecord]


class SelectionListResponse(BaseSchema):
    """GET /selected-subjects body."""
    success: bool = True
    subjects: list[SelectionRecord]


class SelectionCreateResponse(BaseSchema):
    """POST /selected-subjects body."""
    success: bool = True
    message: str
    data: SelectionRecord
