"""Shared test fixtures."""

import copy
import os
import threading
from datetime import datetime

import pytest

from smartschool.database.connection import DatabaseConnection
from smartschool.storage.local_store import LocalStore
from smartschool.storage.remote_store import RemoteStoreError

# Scheduler tests need a Qt event loop but never a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeRemote:
    """In-memory stand-in for RemoteStore.

    ``tables`` maps table name to rows; ``fail`` maps table name to the
    error message a select on it should raise. Every call is recorded.
    """

    def __init__(self, tables=None):
        self.tables = {k: list(v) for k, v in (tables or {}).items()}
        self.fail: dict[str, str] = {}
        self.fail_writes = False
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def calls_named(self, op):
        return [c for c in self.calls if c[0] == op]

    def select(self, table, order_by=None, descending=False):
        self._record("select", table, order_by, descending)
        if table in self.fail:
            raise RemoteStoreError(self.fail[table], table=table)
        rows = copy.deepcopy(self.tables.get(table, []))
        if order_by:
            rows.sort(key=lambda r: r.get(order_by) or "", reverse=descending)
        return rows

    def upsert(self, table, rows, on_conflict="id"):
        self._record("upsert", table, copy.deepcopy(rows), on_conflict)
        if self.fail_writes:
            raise RemoteStoreError("write rejected", table=table)
        existing = self.tables.setdefault(table, [])
        for row in rows:
            for i, current in enumerate(existing):
                if current.get(on_conflict) == row.get(on_conflict):
                    existing[i] = dict(row)
                    break
            else:
                existing.append(dict(row))

    def delete(self, table, column, value):
        self._record("delete", table, column, value)
        if self.fail_writes:
            raise RemoteStoreError("delete rejected", table=table)
        self.tables[table] = [
            r for r in self.tables.get(table, []) if r.get(column) != value
        ]

    def delete_all_except(self, table, column, sentinel):
        self._record("delete_all_except", table, column, sentinel)
        if self.fail_writes:
            raise RemoteStoreError("delete rejected", table=table)
        self.tables[table] = [
            r for r in self.tables.get(table, []) if r.get(column) == sentinel
        ]

    def close(self):
        pass


@pytest.fixture
def local(tmp_path):
    """A fresh local store with the default 5MB quota."""
    return LocalStore(DatabaseConnection(tmp_path / "local.db"))


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 3, 1, 14, 30, 5)


@pytest.fixture
def make_students():
    """Factory for simple student rows: ids prefix1..prefixN."""
    def _make(prefix, count):
        return [
            {"id": f"{prefix}{i}", "name": f"Student {prefix}{i}",
             "class": "Grade 10 A", "status": "Active"}
            for i in range(1, count + 1)
        ]
    return _make
