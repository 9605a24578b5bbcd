"""
PawLog — Aggregate Reporter.

Counts completed pees and poops from the walks table: a gap-free daily
series for charting, month rollups for long ranges, and a current vs
previous month comparison.

Backend failures are not handled here; RemoteUnavailable reaches the caller.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from dateutil.relativedelta import relativedelta

from pawlog.data.models import AggregatePoint, MonthlyComparison, PeriodCounts, RecordKind

if TYPE_CHECKING:
    from pawlog.ports.record_store import RecordStore

logger = logging.getLogger(__name__)

ALL_TIME_START = date(2020, 1, 1)

_WALKS = RecordKind.WALK.table


class RangePreset(Enum):
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the calendar month containing `day`."""
    first = day.replace(day=1)
    return first, first + relativedelta(months=1, days=-1)


def resolve_range(preset: RangePreset, today: date) -> tuple[date, date]:
    """Inclusive (start, end) for a preset, ending today."""
    if preset is RangePreset.YEAR:
        return today - relativedelta(years=1), today
    if preset is RangePreset.ALL:
        return ALL_TIME_START, today
    return today - relativedelta(months=1), today


def percentage_change(current: int, previous: int) -> float:
    """Percent change from previous to current; 100 when starting from zero."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def _count(rows: list[dict]) -> PeriodCounts:
    return PeriodCounts(
        pee_count=sum(1 for r in rows if r.get("peed")),
        poop_count=sum(1 for r in rows if r.get("pooped")),
    )


def rollup_by_month(points: list[AggregatePoint]) -> list[AggregatePoint]:
    """Merge daily points into one point per calendar month, keeping order."""
    months: dict[tuple[int, int], AggregatePoint] = {}
    for p in points:
        key = (p.day.year, p.day.month)
        bucket = months.get(key)
        if bucket is None:
            first = p.day.replace(day=1)
            bucket = months[key] = AggregatePoint(label=first.strftime("%b %Y"), day=first)
        bucket.pee_count += p.pee_count
        bucket.poop_count += p.poop_count
    return list(months.values())


class AggregateReporter:
    """Read-only analytics over the walks table."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def _walk_rows(self, subject_id: int, start: date, end: date) -> list[dict]:
        return await self._store.select(
            _WALKS,
            {"dog_id": subject_id},
            date_range=(start, end),
            columns="date,peed,pooped",
        )

    async def daily_buckets(
        self, subject_id: int, start: date, end: date
    ) -> list[AggregatePoint]:
        """One point per day in [start, end], zero-filled, ascending."""
        if end < start:
            return []

        rows = await self._walk_rows(subject_id, start, end)
        by_day: dict[str, list[dict]] = {}
        for row in rows:
            by_day.setdefault(row.get("date", ""), []).append(row)

        points: list[AggregatePoint] = []
        day = start
        while day <= end:
            counts = _count(by_day.get(day.isoformat(), []))
            points.append(AggregatePoint(
                label=day.strftime("%b %d"),
                day=day,
                pee_count=counts.pee_count,
                poop_count=counts.poop_count,
            ))
            day += timedelta(days=1)

        logger.debug(
            "Daily buckets for dog %d: %d days, %d rows", subject_id, len(points), len(rows),
        )
        return points

    async def monthly_comparison(
        self, subject_id: int, reference: date
    ) -> MonthlyComparison:
        """Totals for the month containing `reference` and the month before it."""
        cur_start, cur_end = month_bounds(reference)
        prev_start, prev_end = month_bounds(cur_start - relativedelta(months=1))

        current = _count(await self._walk_rows(subject_id, cur_start, cur_end))
        previous = _count(await self._walk_rows(subject_id, prev_start, prev_end))
        return MonthlyComparison(current=current, previous=previous)
