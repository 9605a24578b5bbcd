"""Shared test fixtures and configuration.

Sets up fake environment variables so pawlog.config doesn't sys.exit(),
and provides an in-memory RecordStore double plus a board built on it.
"""

import os

# Patch env vars BEFORE any pawlog imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("SUPABASE_URL", "https://fake-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "fake-supabase-key")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("TIMEZONE", "America/New_York")

from datetime import date

import pytest

from pawlog.ports.record_store import RemoteUnavailable

TODAY = date(2026, 10, 19)


class FakeRecordStore:
    """In-memory RecordStore: equality filters, date ranges, id assignment.

    Flip fail_select / fail_insert / fail_update to simulate an outage.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {"walks": [], "meals": []}
        self.calls: list[tuple[str, str]] = []
        self.fail_select = False
        self.fail_insert = False
        self.fail_update = False
        self._next_id = 100

    def seed(self, table: str, **row) -> dict:
        row.setdefault("id", self._next_id)
        self._next_id = max(self._next_id, row["id"]) + 1
        self.tables[table].append(row)
        return row

    async def select(self, table, filters, date_range=None, columns="*"):
        self.calls.append(("select", table))
        if self.fail_select:
            raise RemoteUnavailable("select failed")
        rows = [
            r for r in self.tables[table]
            if all(r.get(k) == v for k, v in filters.items())
        ]
        if date_range is not None:
            start, end = date_range
            rows = [r for r in rows if start.isoformat() <= r["date"] <= end.isoformat()]
        return [dict(r) for r in rows]

    async def insert(self, table, rows):
        self.calls.append(("insert", table))
        if self.fail_insert:
            raise RemoteUnavailable("insert failed")
        return [dict(self.seed(table, **dict(row))) for row in rows]

    async def update(self, table, match, values):
        self.calls.append(("update", table))
        if self.fail_update:
            raise RemoteUnavailable("update failed")
        updated = []
        for row in self.tables[table]:
            if all(row.get(k) == v for k, v in match.items()):
                row.update(values)
                updated.append(dict(row))
        return updated


@pytest.fixture
def store():
    """Return an empty in-memory record store."""
    return FakeRecordStore()


@pytest.fixture
def board(store):
    """Return a DailyBoard backed by the in-memory store."""
    from pawlog.core.board import DailyBoard
    return DailyBoard(store)
