"""
Pytest configuration and fixtures.
"""

import copy
import uuid
import pytest
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from postgrest.exceptions import APIError

from scripts.accounts import Account


# =============================================================================
# In-memory PostgREST fake
# =============================================================================

class FakeResponse:
    def __init__(self, data):
        self.data = data
        self.count = None


class FakeTable:
    def __init__(self):
        self.rows = []
        self.failures = {}   # action -> error message
        self.row_limits = {}  # action -> max rows returned
        self.hidden_columns = {}  # action -> columns left out of the response
        self.calls = []

    def fail(self, action: str, message: str):
        self.failures[action] = message


class FakeQuery:
    def __init__(self, table: FakeTable, action: str, payload=None):
        self.table = table
        self.action = action
        self.payload = payload
        self.filters = []
        self._order = None
        self._limit = None

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] < value)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.table.calls.append(self.action)

        if self.action in self.table.failures:
            raise APIError({
                "message": self.table.failures[self.action],
                "code": "XX000",
                "hint": None,
                "details": None,
            })

        if self.action == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            data = []
            for row in payload:
                row = copy.deepcopy(row)
                row.setdefault("id", str(uuid.uuid4()))
                self.table.rows.append(row)
                data.append(copy.deepcopy(row))
        elif self.action == "select":
            data = [copy.deepcopy(r) for r in self.table.rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                data.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self._limit is not None:
                data = data[:self._limit]
        elif self.action == "update":
            data = []
            for row in self.table.rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    data.append(copy.deepcopy(row))
        elif self.action == "delete":
            data = [r for r in self.table.rows if self._matches(r)]
            self.table.rows = [r for r in self.table.rows if not self._matches(r)]
        else:
            raise AssertionError(f"unexpected action {self.action}")

        if self.action in self.table.row_limits:
            data = data[:self.table.row_limits[self.action]]

        hidden = self.table.hidden_columns.get(self.action)
        if hidden:
            data = [{k: v for k, v in r.items() if k not in hidden} for r in data]

        return FakeResponse(data)


class FakeRequestBuilder:
    def __init__(self, table: FakeTable):
        self.table = table

    def insert(self, json, **kwargs):
        return FakeQuery(self.table, "insert", json)

    def select(self, *columns, **kwargs):
        return FakeQuery(self.table, "select")

    def update(self, json, **kwargs):
        return FakeQuery(self.table, "update", json)

    def delete(self, **kwargs):
        return FakeQuery(self.table, "delete")


class FakePostgrestClient:
    """Stands in for SyncPostgrestClient: from_(table) and context management."""

    def __init__(self):
        self.tables = {}
        self.closed = False

    def table(self, name: str) -> FakeTable:
        return self.tables.setdefault(name, FakeTable())

    def from_(self, name: str):
        return FakeRequestBuilder(self.table(name))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True


class FakeBackend:
    """One fake client per project URL, reused across connections."""

    def __init__(self):
        self.clients = {}
        self.connections = []

    def client_for(self, url: str) -> FakePostgrestClient:
        return self.clients.setdefault(url, FakePostgrestClient())

    def factory(self, url, key):
        self.connections.append(url)
        client = self.client_for(url)
        client.closed = False
        return client


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def backend():
    """In-memory stand-in for every Supabase project."""
    return FakeBackend()


@pytest.fixture
def make_account():
    def _make(index: int = 1, name: str = None):
        return Account(
            id=index,
            name=name or f"Account {index}",
            url=f"https://project{index}.supabase.co",
            key=f"key-{index}",
        )
    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Removes every account slot variable from the environment."""
    for key in list(os.environ):
        if key.startswith("SUPABASE_") or key.startswith("VITE_SUPABASE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def configure_accounts(clean_env):
    """Sets SUPABASE_{i}_* for the given slot indexes."""
    def _configure(*indexes):
        for i in indexes:
            clean_env.setenv(f"SUPABASE_{i}_NAME", f"Project {i}")
            clean_env.setenv(f"SUPABASE_{i}_URL", f"https://project{i}.supabase.co")
            clean_env.setenv(f"SUPABASE_{i}_KEY", f"key-{i}")
    return _configure


@pytest.fixture
def use_backend(backend, monkeypatch):
    """Routes get_db_client to the in-memory backend."""
    from scripts import utils
    monkeypatch.setattr(utils, "get_db_client", backend.factory)
    return backend
