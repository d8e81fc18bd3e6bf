"""
User-facing notification banner state.

Holds at most one notification and clears it after a fixed delay on the
running event loop.
"""

import asyncio
from typing import Callable, Optional, Protocol, Union

import structlog

from config.settings import settings
from models.notification import Notification, NotificationKind

logger = structlog.get_logger(__name__)


class NotificationSink(Protocol):
    """Where the selection reconciler reports outcomes."""

    def notify(self, kind: Union[NotificationKind, str], message: str) -> None:
        ...

    def clear(self) -> None:
        ...


class NotificationCenter:
    """
    Single-slot notification banner with auto-dismiss.

    A new notification replaces the current one and restarts the timer, so
    an older timer never clears a newer message.
    """

    def __init__(
        self,
        dismiss_after: Optional[float] = None,
        on_change: Optional[Callable[[Optional[Notification]], None]] = None,
    ):
        self.dismiss_after = (
            dismiss_after if dismiss_after is not None
            else settings.notification_dismiss_seconds
        )
        self.on_change = on_change
        self.current: Optional[Notification] = None
        self.history: list[Notification] = []
        self._dismiss_handle: Optional[asyncio.TimerHandle] = None

    def notify(self, kind: Union[NotificationKind, str], message: str) -> None:
        notification = Notification(kind=NotificationKind(kind), message=message)

        self._cancel_dismiss()
        self.current = notification
        self.history.append(notification)

        logger.info("notification_shown", kind=notification.kind.value, message=message)
        self._emit()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside an event loop the caller clears it explicitly
            logger.debug("notification_auto_dismiss_unavailable")
            return

        self._dismiss_handle = loop.call_later(
            self.dismiss_after, self._dismiss, notification
        )

    def clear(self) -> None:
        self._cancel_dismiss()
        if self.current is not None:
            self.current = None
            self._emit()

    def _dismiss(self, notification: Notification) -> None:
        self._dismiss_handle = None
        if self.current is notification:
            self.current = None
            self._emit()

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _emit(self) -> None:
        if self.on_change:
            self.on_change(self.current)

    @property
    def errors(self) -> list[Notification]:
        """Error notifications shown so far."""
        return [n for n in self.history if n.kind == NotificationKind.ERROR]
