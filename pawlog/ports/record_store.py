"""Record store port — abstract interface for the daily-records backend.

Core modules depend on this protocol, never on a specific provider.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol


class RemoteUnavailable(Exception):
    """Raised when any backend query, insert or update fails."""


class RecordStore(Protocol):
    """Abstract table access used by core modules.

    Rows are plain dicts keyed by column name. Every method raises
    RemoteUnavailable on failure.
    """

    async def select(
        self,
        table: str,
        filters: dict[str, object],
        date_range: tuple[date, date] | None = None,
        columns: str = "*",
    ) -> list[dict]: ...

    async def insert(self, table: str, rows: list[dict]) -> list[dict]: ...

    async def update(
        self, table: str, match: dict[str, object], values: dict[str, object]
    ) -> list[dict]: ...
