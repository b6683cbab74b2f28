"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require Supabase credentials at import time
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from contextlib import ExitStack
from datetime import date
from typing import Generator

from config.scheduling import SchedulingConfig

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

    eq() filters are applied on execute(); update() writes into the
    table's rows so a later read sees it.
    """

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._filters = []
        self._payload = None
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    def update(self, data):
        self._payload = data
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(str(row.get(col)) == str(val) for col, val in self._filters)

    def execute(self) -> MockSupabaseResponse:
        if self._table.error is not None:
            raise self._table.error

        rows = [row for row in self._table.rows if self._matches(row)]

        if self._payload is not None:
            for row in rows:
                row.update(self._payload)
            self._table.updates.append(self._payload)

        if self._limit is not None:
            rows = rows[:self._limit]

        return MockSupabaseResponse(data=[dict(row) for row in rows])


class MockSupabaseTable:
    """Mock Supabase table backed by a list of row dicts."""

    def __init__(self, rows: list = None):
        self.rows = [dict(row) for row in (rows or [])]
        self.updates = []
        self.error = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self)

    def update(self, data):
        return MockSupabaseQuery(self).update(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table."""
        self._tables[table_name] = MockSupabaseTable(data)

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self.table(table_name).error = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]

    def rows(self, table_name: str) -> list:
        """Current rows of a table (after updates)."""
        return self.table(table_name).rows


STORE_MODULES = [
    "services.machine_service",
    "services.fabric_service",
    "services.order_service",
    "services.dyeing_batch_service",
]

SINGLETONS = {
    "services.machine_service": "_machine_service",
    "services.fabric_service": "_fabric_service",
    "services.order_service": "_order_service",
    "services.dyeing_batch_service": "_dyeing_batch_service",
    "services.schedule_service": "_schedule_service",
    "services.machine_recommendation_service": "_machine_recommendation_service",
    "services.queue_position_service": "_queue_position_service",
}


def reset_service_singletons():
    """Forget cached service instances so they pick up the mock client."""
    for module_name, attribute in SINGLETONS.items():
        module = sys.modules.get(module_name)
        if module is not None:
            setattr(module, attribute, None)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("machines", [
                {"id": "1", "name": "M1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("machines", [...])
            # Now any service using get_supabase_client() gets the mock
    """
    import services  # noqa: F401  (load every service module before patching)

    reset_service_singletons()
    with ExitStack() as stack:
        stack.enter_context(patch("config.database.get_supabase_client", return_value=mock_supabase))
        for module_name in STORE_MODULES:
            stack.enter_context(patch(f"{module_name}.get_supabase_client", return_value=mock_supabase))
        yield mock_supabase
    reset_service_singletons()


@pytest.fixture
def today() -> date:
    """Fixed reference date for schedule calculations."""
    return date(2025, 3, 1)


@pytest.fixture
def scheduling_config() -> SchedulingConfig:
    """Default scheduling parameters, independent of environment."""
    return SchedulingConfig()


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Not used as a context manager, so the startup DB check doesn't run.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("machines", [...])
            response = test_client_with_mock_db.get("/api/machines")
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
