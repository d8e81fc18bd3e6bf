"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings are validated at import time
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")

import asyncio
import pytest
from types import SimpleNamespace
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator, Optional

from models.selection import SelectableItem, SelectionRecord
from exceptions import SelectionAlreadyExistsError


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Rows live in the owning table, so inserts and deletes are visible to
    later queries. eq() filters; order() sorts.
    """

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters: list[tuple[str, object]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._limit: Optional[int] = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> MockSupabaseResponse:
        if self._table.error is not None:
            raise self._table.error

        if self._action == "insert":
            return MockSupabaseResponse(data=self._table._insert(self._payload))

        if self._action == "delete":
            removed = [row for row in self._table.rows if self._matches(row)]
            self._table.rows = [row for row in self._table.rows if not self._matches(row)]
            self._table.deleted.extend(removed)
            return MockSupabaseResponse(data=removed)

        rows = [row for row in self._table.rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            rows = rows[:self._limit]
        return MockSupabaseResponse(data=[dict(row) for row in rows], count=len(rows))


class MockSupabaseTable:
    """Mock Supabase table with configurable rows and failures."""

    def __init__(self, name: str, rows: list = None):
        self.name = name
        self.rows = [dict(row) for row in (rows or [])]
        self.inserted: list[dict] = []
        self.deleted: list[dict] = []
        self.error: Optional[Exception] = None
        self.insert_error: Optional[Exception] = None
        self._counter = 0

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")

    def _insert(self, data) -> list:
        if self.insert_error is not None:
            raise self.insert_error

        items = [data] if isinstance(data, dict) else list(data)
        created = []
        for item in items:
            self._counter += 1
            row = dict(item)
            row.setdefault("id", f"{self.name}-uuid-{self._counter}")
            row["created_at"] = datetime.now(timezone.utc).isoformat()
            self.rows.append(row)
            self.inserted.append(row)
            created.append(dict(row))
        return created


class MockSupabaseAuth:
    """Mock supabase.auth with a token → user map."""

    def __init__(self):
        self.users: dict[str, SimpleNamespace] = {}

    def add_user(self, token: str, user_id: str, email: str = None):
        self.users[token] = SimpleNamespace(id=user_id, email=email)

    def get_user(self, token: str):
        if token not in self.users:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.users[token])


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}
        self.auth = MockSupabaseAuth()

    def set_table_data(self, table_name: str, data: list):
        """Configure mock rows for a table."""
        self._tables[table_name] = MockSupabaseTable(table_name, data)
        return self._tables[table_name]

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(name)
        return self._tables[name]


class UniqueViolation(Exception):
    """Stand-in for postgrest.APIError with a Postgres error code."""

    def __init__(self, message: str = "duplicate key value violates unique constraint"):
        super().__init__(message)
        self.code = "23505"


# ===================
# FAKE SELECTION STORE
# ===================

class FakeSelectionStore:
    """
    In-memory SelectionStore with controllable timing.

    hold("create") makes create calls wait until release("create").
    Set create_error / delete_error / list_error to make calls fail.
    """

    def __init__(self, records: list = None):
        self.records: list[SelectionRecord] = list(records or [])
        self.calls: list[tuple[str, object]] = []
        self.create_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None
        self._gates: dict[str, asyncio.Event] = {}
        self._counter = 0

    def hold(self, operation: str) -> None:
        self._gates[operation] = asyncio.Event()

    def release(self, operation: str) -> None:
        self._gates.pop(operation).set()

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    async def _gate(self, operation: str) -> None:
        gate = self._gates.get(operation)
        if gate is not None:
            await gate.wait()

    async def list_selections(self) -> list[SelectionRecord]:
        self.calls.append(("list", None))
        await self._gate("list")
        if self.list_error is not None:
            raise self.list_error
        return list(self.records)

    async def create_selection(self, item: SelectableItem) -> SelectionRecord:
        self.calls.append(("create", item.key))
        await self._gate("create")
        if self.create_error is not None:
            raise self.create_error
        if any(r.key == item.key for r in self.records):
            raise SelectionAlreadyExistsError(f'You have already selected "{item.name}"', status_code=400)
        self._counter += 1
        record = SelectionRecord(
            id=f"srv-{self._counter}",
            subject_code=item.code,
            subject_name=item.name,
            category=item.category,
            reasoning=item.reasoning,
        )
        self.records.append(record)
        return record

    async def delete_selection(self, selection_id: str) -> None:
        self.calls.append(("delete", selection_id))
        await self._gate("delete")
        if self.delete_error is not None:
            raise self.delete_error
        self.records = [r for r in self.records if r.id != selection_id]


class RecordingNotifications:
    """NotificationSink that remembers everything."""

    def __init__(self):
        self.events: list[tuple[str, Optional[str]]] = []
        self.current: Optional[tuple[str, str]] = None

    def notify(self, kind, message: str) -> None:
        kind = getattr(kind, "value", kind)
        self.events.append((kind, message))
        self.current = (kind, message)

    def clear(self) -> None:
        self.events.append(("clear", None))
        self.current = None

    @property
    def errors(self) -> list[str]:
        return [message for kind, message in self.events if kind == "error"]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("selected_subjects", [
                {"id": "1", "student_id": "student-1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock and reset service singletons.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("hsc_subjects", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    import services.auth_service as auth_module
    import services.hsc_subject_service as subject_module
    import services.selection_service as selection_module

    def reset_singletons():
        auth_module._auth_service = None
        subject_module._hsc_subject_service = None
        selection_module._selection_service = None

    reset_singletons()
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.auth_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.auth_service.get_admin_client", return_value=mock_supabase):
                with patch("services.hsc_subject_service.get_supabase_client", return_value=mock_supabase):
                    with patch("services.selection_service.get_supabase_client", return_value=mock_supabase):
                        yield mock_supabase
    reset_singletons()


@pytest.fixture
def student_auth(mock_supabase) -> dict:
    """
    Register a student token and return request headers for it.
    """
    mock_supabase.auth.add_user("student-token", "student-1", "student@example.com")
    mock_supabase.set_table_data("profile_roles", [
        {"profile_id": "student-1", "role": "Student"}
    ])
    return {"Authorization": "Bearer student-token"}


@pytest.fixture
def fake_store() -> FakeSelectionStore:
    return FakeSelectionStore()


@pytest.fixture
def notifications() -> RecordingNotifications:
    return RecordingNotifications()


@pytest.fixture
def math_item() -> SelectableItem:
    return SelectableItem(code="MATH1", name="Math Advanced", category="Mathematics")


@pytest.fixture
def chem_item() -> SelectableItem:
    return SelectableItem(code="CHEM1", name="Chemistry", category="Science")


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase, student_auth):
            response = test_client_with_mock_db.get(
                "/api/student/selected-subjects", headers=student_auth
            )
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("main.check_connection", return_value={"status": "healthy", "subjects_count": 0}):
        yield TestClient(app)
