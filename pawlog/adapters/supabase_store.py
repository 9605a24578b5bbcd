"""Supabase record store — implements RecordStore with supabase-py.

Queries go through the async client's table builder
(`.table().select().eq().gte().lte()`). Selects are read in pages with
`.range()`, since the server returns at most 1000 rows per request.

Every failure (API error, network error, unexpected body) surfaces as
RemoteUnavailable; callers never see supabase or httpx exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from pawlog.ports.record_store import RemoteUnavailable

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 10.0
PAGE_SIZE = 1000


def _encode(value: object) -> str:
    """Render a filter value the way PostgREST expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class SupabaseRecordStore:
    """Supabase implementation of RecordStore."""

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        page_size: int = PAGE_SIZE,
        client: AsyncClient | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._key = key
        self._timeout = timeout
        self._page_size = page_size
        self._client = client
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = await acreate_client(
                    self._url,
                    self._key,
                    options=AsyncClientOptions(postgrest_client_timeout=self._timeout),
                )
                logger.info("Supabase client created for %s", self._url)
        return self._client

    async def _execute(self, action: str, table: str, query) -> list[dict]:
        try:
            response = await query.execute()
        except APIError as exc:
            logger.error("%s %s failed: %s (code %s)", action, table, exc.message, exc.code)
            raise RemoteUnavailable(f"{action} {table} failed ({exc.code})") from exc
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", action, table, exc)
            raise RemoteUnavailable(f"{action} {table} failed: {exc}") from exc

        if not isinstance(response.data, list):
            raise RemoteUnavailable(f"Unexpected response format from {table}")
        return response.data

    async def select(
        self,
        table: str,
        filters: dict[str, object],
        date_range: tuple[date, date] | None = None,
        columns: str = "*",
    ) -> list[dict]:
        client = await self._get_client()
        rows: list[dict] = []
        offset = 0
        while True:
            query = client.table(table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, _encode(value))
            if date_range is not None:
                start, end = date_range
                query = query.gte("date", _encode(start)).lte("date", _encode(end))
            query = query.order("id").range(offset, offset + self._page_size - 1)

            page = await self._execute("select", table, query)
            rows.extend(page)
            if len(page) < self._page_size:
                break
            offset += len(page)

        logger.debug("Selected %d rows from %s", len(rows), table)
        return rows

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        client = await self._get_client()
        inserted = await self._execute("insert", table, client.table(table).insert(rows))
        logger.info("Inserted %d rows into %s", len(inserted), table)
        return inserted

    async def update(
        self, table: str, match: dict[str, object], values: dict[str, object]
    ) -> list[dict]:
        if not match:
            raise ValueError("Refusing to update without a match filter")
        client = await self._get_client()
        query = client.table(table).update(values)
        for column, value in match.items():
            query = query.eq(column, _encode(value))
        updated = await self._execute("update", table, query)
        logger.info("Updated %d rows in %s where %s", len(updated), table, match)
        return updated
