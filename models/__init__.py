"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    MessageResponse,
)
from models.selection import (
    TEMP_ID_PREFIX,
    NaturalKey,
    new_temp_id,
    is_temp_id,
    SelectableItem,
    PendingSelectionRecord,
    SelectionCreate,
    SelectionRecord,
    LocalSelection,
    SelectionListResponse,
    SelectionCreateResponse,
)
from models.subject import (
    HSCSubjectResponse,
    HSCSubjectListResponse,
)
from models.auth import AuthenticatedUser
from models.notification import (
    NotificationKind,
    Notification,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "MessageResponse",

    # Selections
    "TEMP_ID_PREFIX",
    "NaturalKey",
    "new_temp_id",
    "is_temp_id",
    "SelectableItem",
    "PendingSelectionRecord",
    "SelectionCreate",
    "SelectionRecord",
    "LocalSelection",
    "SelectionListResponse",
    "SelectionCreateResponse",

    # Subjects
    "HSCSubjectResponse",
    "HSCSubjectListResponse",

    # Auth
    "AuthenticatedUser",

    # Notifications
    "NotificationKind",
    "Notification",
]
