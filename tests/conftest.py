"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time and require these
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from contextlib import ExitStack
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Callable, Generator, Optional
from unittest.mock import patch

# Modules holding a `get_supabase_client` reference and a service singleton
SERVICE_MODULES = {
    "services.taxonomy_service": "_taxonomy_service",
    "services.import_commit_service": "_import_commit_service",
    "services.rate_limit_service": "_rate_limit_service",
    "services.subscription_service": "_subscription_service",
    "services.auth_service": "_auth_service",
}


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


def _as_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Filters are applied to the table's stored rows; inserts and updates
    are persisted so later queries see them.
    """

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._operation = "select"
        self._payload = None
        self._filters: list[Callable[[dict], bool]] = []
        self._limit: Optional[int] = None
        self._count_requested = False
        self._single = False

    def select(self, *args, count: Optional[str] = None, **kwargs):
        self._count_requested = count is not None
        return self

    def insert(self, data):
        self._operation = "insert"
        self._payload = data
        return self

    def update(self, data):
        self._operation = "update"
        self._payload = data
        return self

    def delete(self):
        self._operation = "delete"
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def gte(self, column, value):
        self._filters.append(
            lambda row: row.get(column) is not None and str(row.get(column)) >= str(value)
        )
        return self

    def or_(self, expression: str):
        conditions = []
        for part in expression.split(","):
            column, operator, value = part.split(".", 2)
            assert operator == "eq", f"unsupported or_ operator: {operator}"
            conditions.append((column, value))

        self._filters.append(
            lambda row: any(
                row.get(column) is not None and _as_text(row.get(column)) == value
                for column, value in conditions
            )
        )
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._single = True
        return self

    def maybe_single(self):
        self._single = True
        return self

    def _matching(self) -> list[dict]:
        return [row for row in self._table.rows if all(f(row) for f in self._filters)]

    def execute(self) -> MockSupabaseResponse:
        if self._operation == "insert":
            return MockSupabaseResponse(self._table.insert_rows(self._payload))

        if self._operation == "update":
            self._table.check_failure("update", self._payload)
            updated = []
            for row in self._matching():
                row.update(self._payload)
                updated.append(dict(row))
            return MockSupabaseResponse(updated)

        if self._operation == "delete":
            matching = self._matching()
            self._table.rows = [row for row in self._table.rows if row not in matching]
            return MockSupabaseResponse(matching)

        self._table.check_failure("select", None)
        matching = [dict(row) for row in self._matching()]
        count = len(matching) if self._count_requested else None
        if self._limit is not None:
            matching = matching[:self._limit]

        if self._single:
            return MockSupabaseResponse(matching[0] if matching else None, count)
        return MockSupabaseResponse(matching, count)


class MockSupabaseTable:
    """In-memory table with generated ids and injectable failures."""

    def __init__(self, name: str, rows: Optional[list] = None):
        self.name = name
        self.rows: list[dict] = [dict(row) for row in rows or []]
        self.failures: dict[str, Callable] = {}
        self._next_id = len(self.rows) + 1

    def check_failure(self, operation: str, payload) -> None:
        predicate = self.failures.get(operation)
        if predicate is not None and predicate(payload):
            raise Exception(f"{operation} on {self.name} failed")

    def insert_rows(self, payload) -> list[dict]:
        items = [payload] if isinstance(payload, dict) else list(payload)
        for item in items:
            self.check_failure("insert", item)

        created = []
        for item in items:
            row = dict(item)
            row.setdefault("id", f"{self.name}-{self._next_id}")
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            self._next_id += 1
            self.rows.append(row)
            created.append(dict(row))
        return created

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self).select(*args, **kwargs)

    def insert(self, data):
        return MockSupabaseQuery(self).insert(data)

    def update(self, data):
        return MockSupabaseQuery(self).update(data)

    def delete(self):
        return MockSupabaseQuery(self).delete()


class MockSupabaseAuth:
    """Mock Supabase Auth: token -> user id."""

    def __init__(self):
        self.tokens: dict[str, str] = {}

    def get_user(self, jwt: str):
        if jwt not in self.tokens:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[jwt]))


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}
        self.auth = MockSupabaseAuth()

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(table_name, data)

    def rows(self, table_name: str) -> list[dict]:
        """Current contents of a table."""
        return self.table(table_name).rows

    def fail_on(
        self,
        table_name: str,
        operation: str,
        when: Optional[Callable] = None,
    ):
        """Make an operation on a table raise (optionally only for matching payloads)."""
        self.table(table_name).failures[operation] = when or (lambda payload: True)

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(name)
        return self._tables[name]


# ===================
# FIXTURES
# ===================

def _reset_service_singletons() -> None:
    import importlib

    for module_name, attribute in SERVICE_MODULES.items():
        module = importlib.import_module(module_name)
        setattr(module, attribute, None)


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("species", [
                {"id": "sp-1", "name": "Ball Python", "is_global": True}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("reptiles", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    _reset_service_singletons()
    with ExitStack() as stack:
        stack.enter_context(
            patch("config.database.get_supabase_client", return_value=mock_supabase)
        )
        for module_name in SERVICE_MODULES:
            stack.enter_context(
                patch(f"{module_name}.get_supabase_client", return_value=mock_supabase)
            )
        yield mock_supabase
    _reset_service_singletons()


@pytest.fixture
def user_id() -> str:
    return "user-1"


@pytest.fixture
def auth_headers(mock_supabase, user_id) -> dict:
    """Authorization header for a token the mock auth accepts."""
    mock_supabase.auth.tokens["valid-token"] = user_id
    return {"Authorization": "Bearer valid-token"}


@pytest.fixture
def catalog(mock_supabase, user_id) -> MockSupabaseClient:
    """
    Store seeded with one global species/morph and a 100-reptile plan.
    """
    mock_supabase.set_table_data("species", [
        {"id": "sp-bp", "name": "Ball Python", "is_global": True, "user_id": None},
    ])
    mock_supabase.set_table_data("morphs", [
        {"id": "mo-albino", "name": "Albino", "species_id": "sp-bp",
         "is_global": True, "user_id": None},
    ])
    mock_supabase.set_table_data("subscriptions", [
        {"user_id": user_id, "plan": "pro"},
    ])
    mock_supabase.set_table_data("subscription_limits", [
        {"plan": "free", "reptile_limit": 10},
        {"plan": "pro", "reptile_limit": 100},
    ])
    return mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("reptiles", [...])
            response = test_client_with_mock_db.put("/api/reptiles/import", json={...})
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
