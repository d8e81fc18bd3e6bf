"""
HSC subject catalog schemas.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin


class HSCSubjectResponse(BaseSchema, TimestampMixin):
    """HSC subject as shown in the catalog."""

    id: str = Field(..., description="Subject UUID")
    code: str = Field(..., description="Subject code")
    name: str = Field(..., description="Subject name")
    category: Optional[str] = Field(None, description="Subject category")
    units: Optional[int] = Field(None, ge=0, description="Unit value")
    difficulty: Optional[str] = Field(None, description="Difficulty label")
    popularity: int = Field(0, description="Relative popularity")
    prerequisites: list[str] = Field(default_factory=list)
    career_paths: list[str] = Field(default_factory=list)
    recommended_for: list[str] = Field(default_factory=list)
    atar_contribution: str = Field("Medium", description="ATAR contribution band")
    exam_type: str = Field("Written", description="Exam format")
    practical_work: str = Field("None", description="Practical component")
    description: str = Field("", description="Subject description")


class HSCSubjectListResponse(BaseSchema):
    """GET /hsc-subjects body."""
    success: bool = True
    subjects: list[HSCSubjectResponse]
