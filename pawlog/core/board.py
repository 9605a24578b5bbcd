"""
PawLog — Daily Board.

The in-memory cache the bot renders from: today's walks and meals for every
dog. The backend stays the source of truth; the board is refreshed by
`load` and kept in step by the Update Applier.

Each load is tagged with a per-dog generation number. A load whose
generation is no longer the latest when its response arrives is discarded,
so a slow old response can't overwrite a newer one. Loads of the same dog
also run one at a time, so two callers can't both seed the same day.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING

from pawlog.core.clock import DEFAULT_TIMEZONE, local_today
from pawlog.core.overdue import OVERDUE_THRESHOLD_MINUTES, compute_overdue
from pawlog.core.reconciler import DailyRecordReconciler
from pawlog.core.updater import Mutation, UpdateApplier
from pawlog.data.models import DOGS, DailyRecord, RecordKind, Subject

if TYPE_CHECKING:
    from pawlog.ports.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of loading one dog's day."""

    subject: Subject
    walks: list[DailyRecord] = field(default_factory=list)
    meals: list[DailyRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    stale: bool = False


class DailyBoard:
    """Today's records for every dog, plus the operations the UI calls."""

    def __init__(
        self,
        store: RecordStore,
        subjects: tuple[Subject, ...] = DOGS,
        tz_name: str = DEFAULT_TIMEZONE,
        overdue_threshold: int = OVERDUE_THRESHOLD_MINUTES,
        strict_clock: bool = False,
    ) -> None:
        self.subjects = subjects
        self.tz_name = tz_name
        self._overdue_threshold = overdue_threshold
        self._reconciler = DailyRecordReconciler(
            store, tz_name=tz_name, strict_clock=strict_clock,
        )
        self._applier = UpdateApplier(store, self)
        self._records: dict[tuple[int, RecordKind], list[DailyRecord]] = {}
        self._placeholder: set[tuple[int, RecordKind]] = set()
        self._generation: dict[int, int] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self.day: date | None = None

    # -- cache -------------------------------------------------------------

    def records(self, subject_id: int, kind: RecordKind) -> list[DailyRecord]:
        return list(self._records.get((subject_id, kind), []))

    def replace(self, subject_id: int, kind: RecordKind, records: list[DailyRecord]) -> None:
        self._records[(subject_id, kind)] = list(records)

    def is_placeholder(self, subject_id: int, kind: RecordKind) -> bool:
        return (subject_id, kind) in self._placeholder

    def walks(self, subject_id: int) -> list[DailyRecord]:
        return self.records(subject_id, RecordKind.WALK)

    def meals(self, subject_id: int) -> list[DailyRecord]:
        return self.records(subject_id, RecordKind.MEAL)

    # -- loading -----------------------------------------------------------

    async def load(self, subject: Subject, today: date | None = None) -> LoadResult:
        """Reconcile today's walks and meals for one dog into the board."""
        generation = self._generation.get(subject.id, 0) + 1
        self._generation[subject.id] = generation
        day = today or local_today(self.tz_name)

        async with self._locks.setdefault(subject.id, asyncio.Lock()):
            walks = await self._reconciler.ensure_today(subject, RecordKind.WALK, day)
            meals = await self._reconciler.ensure_today(subject, RecordKind.MEAL, day)

        result = LoadResult(subject=subject, walks=walks.records, meals=meals.records)
        for res in (walks, meals):
            if res.error and res.error not in result.errors:
                result.errors.append(res.error)

        if self._generation[subject.id] != generation:
            logger.info(
                "Discarding stale load #%d for %s", generation, subject.display_name,
            )
            result.stale = True
            return result

        self.day = day
        for kind, res in ((RecordKind.WALK, walks), (RecordKind.MEAL, meals)):
            self.replace(subject.id, kind, res.records)
            if res.placeholder:
                self._placeholder.add((subject.id, kind))
            else:
                self._placeholder.discard((subject.id, kind))

        logger.info(
            "Board loaded for %s on %s: %d walks, %d meals",
            subject.display_name, day, len(walks.records), len(meals.records),
        )
        return result

    async def load_all(self, today: date | None = None) -> list[LoadResult]:
        day = today or local_today(self.tz_name)
        return list(await asyncio.gather(*(self.load(s, day) for s in self.subjects)))

    # -- actions -----------------------------------------------------------

    async def set_field(
        self,
        subject_id: int,
        record_id: int,
        kind: RecordKind,
        field: str,
        value: bool,
    ) -> Mutation:
        return await self._applier.set_field(subject_id, record_id, kind, field, value)

    def overdue(self, subject: Subject, now: datetime) -> list[str]:
        return compute_overdue(
            self.walks(subject.id),
            self.meals(subject.id),
            subject,
            now,
            threshold_minutes=self._overdue_threshold,
        )
