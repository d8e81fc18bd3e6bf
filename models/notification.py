"""
Notification schemas for user-facing banners.
"""

from enum import Enum

from models.base import BaseSchema


class NotificationKind(str, Enum):
    """Banner style."""
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseSchema):
    kind: NotificationKind
    message: str
