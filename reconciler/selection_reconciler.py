"""
Optimistic selection reconciler.

Keeps a local list of a student's selected subjects in step with the remote
store without waiting on the network. A toggle updates the local list right
away, then settles in a background task:

    Absent  --toggle--> Pending-Add    --ok--> Present  / --fail--> Absent
    Present --toggle--> Pending-Remove --ok--> Absent   / --fail--> Present

Toggles are serialised per natural key: while a key is pending, further
toggles on it are dropped. Different keys settle independently.

Every settle rewrites only its own key. Rollback restores the key's entries
from a snapshot taken before the optimistic change, so concurrent toggles on
other keys are left alone.
"""

import asyncio
import inspect
from typing import Awaitable, Coroutine, Optional, TypeVar

import structlog

from config.settings import settings
from integrations.notifications import NotificationSink
from integrations.selection_api import SelectionStore
from models.notification import NotificationKind
from models.selection import (
    LocalSelection,
    NaturalKey,
    PendingSelectionRecord,
    SelectableItem,
    SelectionRecord,
)
from exceptions import SelectionStoreError, SelectionAlreadyExistsError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SAVE_FAILED_MESSAGE = "Failed to save selection. Please try again."
REFRESH_FAILED_MESSAGE = "Failed to refresh selection. Please refresh the page."

# (index in the local list, entry) for every entry of one key
KeySnapshot = list[tuple[int, LocalSelection]]


class SelectionReconciler:
    """
    Local view of a student's selections, mirrored to a SelectionStore.

    Must be used from a single event loop.
    """

    def __init__(
        self,
        store: SelectionStore,
        notifications: NotificationSink,
        request_timeout: Optional[float] = None,
    ):
        self.store = store
        self.notifications = notifications
        self.request_timeout = (
            request_timeout if request_timeout is not None
            else settings.selection_request_timeout_seconds
        )
        self._selections: list[LocalSelection] = []
        self._in_flight: dict[NaturalKey, asyncio.Task] = {}

    # ===================
    # LOCAL VIEW
    # ===================

    @property
    def selections(self) -> list[LocalSelection]:
        """Copy of the local list, in display order."""
        return list(self._selections)

    @property
    def pending_keys(self) -> frozenset[NaturalKey]:
        return frozenset(self._in_flight)

    def find(self, key: NaturalKey) -> Optional[LocalSelection]:
        for entry in self._selections:
            if entry.key == key:
                return entry
        return None

    def is_selected(self, item: SelectableItem) -> bool:
        return self.find(item.key) is not None

    def is_pending(self, item: SelectableItem) -> bool:
        return item.key in self._in_flight

    # ===================
    # OPERATIONS
    # ===================

    async def refresh(self) -> list[SelectionRecord]:
        """
        Replace the local list with the store's.

        Keys with a toggle in flight keep their local entry; that toggle
        settles them.

        Raises:
            SelectionStoreError: If the store can't be read
            asyncio.TimeoutError: If the store doesn't answer in time
        """
        records = await self._call(self.store.list_selections())
        self._adopt(records, owner=None)
        return records

    async def load(self) -> bool:
        """
        Initial fetch. Failures are logged, not raised.

        Returns:
            True if the list was loaded
        """
        try:
            await self.refresh()
            return True
        except Exception as e:
            logger.error("selections_load_failed", error=str(e), error_type=type(e).__name__)
            return False

    def toggle(self, item: SelectableItem) -> Optional[asyncio.Task]:
        """
        Select or deselect an item.

        The local list changes before this returns; the store call runs in
        a background task. Must be called with a running event loop.

        Args:
            item: Item to toggle

        Returns:
            The settle task, or None if a toggle on this key is in flight
        """
        key = item.key

        if key in self._in_flight:
            logger.debug("toggle_dropped_in_flight", key=str(key))
            return None

        existing = self.find(key)
        snapshot = self._snapshot(key)

        if existing is not None:
            self._drop_key(key)
            self.notifications.notify(
                NotificationKind.SUCCESS,
                f'Removed "{item.name}" from your selections'
            )
            settle = self._settle_remove(item, existing, snapshot)
        else:
            pending = PendingSelectionRecord.for_item(item)
            self._selections.append(pending)
            self.notifications.notify(
                NotificationKind.SUCCESS,
                f'Added "{item.name}" to your selections ✓'
            )
            settle = self._settle_add(item, pending, snapshot)

        logger.info(
            "selection_toggled",
            key=str(key),
            action="remove" if existing is not None else "add"
        )

        task = asyncio.get_running_loop().create_task(self._run(key, settle))
        task.add_done_callback(
            lambda done: self._on_task_done(key, done, settle, snapshot)
        )
        self._in_flight[key] = task
        return task

    async def wait_idle(self) -> None:
        """Wait for every in-flight toggle to settle."""
        while self._in_flight:
            await asyncio.gather(*self._in_flight.values(), return_exceptions=True)

    # ===================
    # SETTLEMENT
    # ===================

    async def _run(self, key: NaturalKey, settle: Awaitable[None]) -> None:
        try:
            await settle
        finally:
            self._in_flight.pop(key, None)

    def _on_task_done(
        self,
        key: NaturalKey,
        task: asyncio.Task,
        settle: Coroutine,
        snapshot: KeySnapshot,
    ) -> None:
        """
        Release the key once its task is done.

        A task cancelled before its first step never ran the settle
        coroutine, so neither the rollback nor _run's cleanup happened.
        """
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

        if inspect.getcoroutinestate(settle) == inspect.CORO_CREATED:
            settle.close()
            self._restore(key, snapshot)
            logger.info("selection_toggle_cancelled_before_start", key=str(key))

    async def _settle_add(
        self,
        item: SelectableItem,
        pending: PendingSelectionRecord,
        snapshot: KeySnapshot,
    ) -> None:
        try:
            record = await self._call(self.store.create_selection(item))

        except asyncio.CancelledError:
            self._restore(item.key, snapshot)
            raise

        except SelectionAlreadyExistsError:
            logger.info("selection_already_exists", key=str(item.key))
            self._roll_back(item.key, snapshot, message=None)
            await self._adopt_remote(item.key, snapshot)
            return

        except asyncio.TimeoutError:
            logger.warning("selection_add_timed_out", key=str(item.key), timeout=self.request_timeout)
            self._roll_back(item.key, snapshot, message=None)
            await self._adopt_remote(item.key, snapshot)
            return

        except Exception as e:
            logger.error("selection_add_failed", key=str(item.key), error=str(e))
            self._roll_back(item.key, snapshot, message=self._failure_message(e))
            return

        self._replace_pending(pending, record)
        logger.info("selection_add_settled", key=str(item.key), selection_id=record.id)

    async def _settle_remove(
        self,
        item: SelectableItem,
        existing: SelectionRecord,
        snapshot: KeySnapshot,
    ) -> None:
        try:
            await self._call(self.store.delete_selection(existing.id))

        except asyncio.CancelledError:
            self._restore(item.key, snapshot)
            raise

        except asyncio.TimeoutError:
            logger.warning("selection_remove_timed_out", key=str(item.key), timeout=self.request_timeout)
            self._roll_back(item.key, snapshot, message=None)
            await self._adopt_remote(item.key, snapshot)
            return

        except Exception as e:
            logger.error("selection_remove_failed", key=str(item.key), error=str(e))
            self._roll_back(item.key, snapshot, message=self._failure_message(e))
            return

        # A refresh during the delete may have brought the row back
        self._drop_key(item.key)
        logger.info("selection_remove_settled", key=str(item.key), selection_id=existing.id)

    async def _adopt_remote(self, key: NaturalKey, snapshot: KeySnapshot) -> None:
        """
        Resolve an ambiguous outcome by adopting the store's list.

        Falls back to the snapshot, with an error banner, if the store
        can't be read either.
        """
        try:
            records = await self._call(self.store.list_selections())
        except Exception as e:
            logger.error("selection_refresh_failed", key=str(key), error=str(e))
            self._restore(key, snapshot)
            self.notifications.notify(NotificationKind.ERROR, REFRESH_FAILED_MESSAGE)
            return

        self._adopt(records, owner=key)
        logger.info("selection_reconciled_from_store", key=str(key), count=len(records))

    def _roll_back(self, key: NaturalKey, snapshot: KeySnapshot, message: Optional[str]) -> None:
        """Restore the key, drop the optimistic banner and report the error."""
        self._restore(key, snapshot)
        self.notifications.clear()
        if message:
            self.notifications.notify(NotificationKind.ERROR, message)

    async def _call(self, request: Awaitable[T]) -> T:
        return await asyncio.wait_for(request, timeout=self.request_timeout)

    @staticmethod
    def _failure_message(error: Exception) -> str:
        if isinstance(error, SelectionStoreError) and error.message:
            return error.message
        return str(error) or SAVE_FAILED_MESSAGE

    # ===================
    # LIST MUTATION
    # ===================

    def _snapshot(self, key: NaturalKey) -> KeySnapshot:
        return [
            (index, entry)
            for index, entry in enumerate(self._selections)
            if entry.key == key
        ]

    def _restore(self, key: NaturalKey, snapshot: KeySnapshot) -> None:
        self._drop_key(key)
        for index, entry in snapshot:
            self._selections.insert(min(index, len(self._selections)), entry)

    def _drop_key(self, key: NaturalKey) -> None:
        self._selections = [entry for entry in self._selections if entry.key != key]

    def _replace_pending(self, pending: PendingSelectionRecord, record: SelectionRecord) -> None:
        """Swap the pending entry for the stored record, keeping its position."""
        position = None
        for index, entry in enumerate(self._selections):
            if entry.id == pending.id:
                position = index
                break

        self._selections = [
            entry for entry in self._selections
            if entry.id != pending.id and entry.key != record.key
        ]

        if position is None:
            self._selections.append(record)
        else:
            self._selections.insert(min(position, len(self._selections)), record)

    def _adopt(self, records: list[SelectionRecord], owner: Optional[NaturalKey]) -> None:
        """
        Take the store's list as the local view.

        Entries for keys still owned by another in-flight toggle stay as
        they are locally.
        """
        held = {key for key in self._in_flight if key != owner}

        adopted: list[LocalSelection] = [r for r in records if r.key not in held]
        adopted.extend(entry for entry in self._selections if entry.key in held)

        self._selections = adopted
