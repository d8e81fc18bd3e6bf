"""
Authenticated user schema.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema


class AuthenticatedUser(BaseSchema):
    """User resolved from a bearer token."""

    id: str = Field(..., description="Supabase auth user UUID")
    email: Optional[str] = Field(None, description="Account email")
    roles: list[str] = Field(default_factory=list, description="Lowercased roles")

    def has_any_role(self, allowed: list[str]) -> bool:
        wanted = {r.lower().strip() for r in allowed}
        return bool(wanted.intersection(self.roles))
