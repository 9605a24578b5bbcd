"""
PawLog — Daily Record Reconciler.

Makes sure every dog has today's walk (and, where enabled, meal) records.
The first read of the day finds no rows and seeds the default slot catalog
with a single batch insert; later reads return the stored rows.

Graceful degradation: if the backend is unreachable, a local default set
with placeholder ids is returned so the schedule can still be shown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from pawlog.core.clock import DEFAULT_TIMEZONE, local_today, sort_by_clock
from pawlog.data.models import DailyRecord, RecordKind, Subject
from pawlog.ports.record_store import RemoteUnavailable

if TYPE_CHECKING:
    from pawlog.ports.record_store import RecordStore

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Using default data. Changes may not be saved."


@dataclass
class ReconcileResult:
    """Today's records for one dog and kind."""

    records: list[DailyRecord] = field(default_factory=list)
    error: str | None = None      # recoverable, shown to the user
    placeholder: bool = False     # records were synthesized locally


def default_records(subject: Subject, kind: RecordKind, day: str) -> list[DailyRecord]:
    """The slot catalog for a kind as unsaved records with sequential ids."""
    return [
        kind.new_record(record_id=index, day=day, time=slot.time, dog_id=subject.id)
        for index, slot in enumerate(kind.slots, start=1)
    ]


class DailyRecordReconciler:
    """Loads or seeds today's records through a RecordStore."""

    def __init__(
        self,
        store: RecordStore,
        tz_name: str = DEFAULT_TIMEZONE,
        strict_clock: bool = False,
    ) -> None:
        self._store = store
        self._tz_name = tz_name
        self._strict_clock = strict_clock

    async def ensure_today(
        self,
        subject: Subject,
        kind: RecordKind,
        today: date | None = None,
    ) -> ReconcileResult:
        """Return today's records for a dog, creating the defaults on first access."""
        if kind is RecordKind.MEAL and not subject.meals_enabled:
            return ReconcileResult()

        day = (today or local_today(self._tz_name)).isoformat()

        try:
            rows = await self._store.select(
                kind.table, {"date": day, "dog_id": subject.id},
            )
            if not rows:
                seed = [r.to_row() for r in default_records(subject, kind, day)]
                rows = await self._store.insert(kind.table, seed)
                logger.info(
                    "Seeded %d %s records for %s on %s",
                    len(rows), kind.value, subject.display_name, day,
                )
        except RemoteUnavailable as exc:
            logger.warning(
                "Falling back to default %s records for %s: %s",
                kind.value, subject.display_name, exc,
            )
            return ReconcileResult(
                records=sort_by_clock(default_records(subject, kind, day)),
                error=FALLBACK_MESSAGE,
                placeholder=True,
            )

        records = [kind.record_type.from_row(row) for row in rows]
        return ReconcileResult(records=sort_by_clock(records, strict=self._strict_clock))
