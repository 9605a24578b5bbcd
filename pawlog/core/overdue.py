"""Overdue detection — pure business logic.

A slot is overdue once the current wall-clock time is strictly more than
`threshold_minutes` past the slot's time on the same day and the slot has
not been handled (walk: peed, meal: completed). Elapsed time is measured
in minutes and seconds, not by comparing hour numbers.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from pawlog.core.clock import FormatError, parse_clock
from pawlog.data.models import DailyRecord, RecordKind, Subject

logger = logging.getLogger(__name__)

OVERDUE_THRESHOLD_MINUTES = 60

_NOUNS = {RecordKind.WALK: "walk", RecordKind.MEAL: "meal"}


def minutes_past(slot_time: str, now: datetime) -> float:
    """Minutes elapsed since a slot's time today (negative if still ahead)."""
    now_minutes = now.hour * 60 + now.minute + now.second / 60
    return now_minutes - parse_clock(slot_time)


def is_overdue(
    record: DailyRecord,
    kind: RecordKind,
    now: datetime,
    threshold_minutes: int = OVERDUE_THRESHOLD_MINUTES,
) -> bool:
    if getattr(record, kind.completion_field):
        return False
    return minutes_past(record.time, now) > threshold_minutes


def compute_overdue(
    walks: Sequence[DailyRecord],
    meals: Sequence[DailyRecord],
    subject: Subject,
    now: datetime,
    threshold_minutes: int = OVERDUE_THRESHOLD_MINUTES,
) -> list[str]:
    """Return the de-duplicated overdue messages for one dog, in slot order."""
    batches = [(RecordKind.WALK, walks)]
    if subject.meals_enabled:
        batches.append((RecordKind.MEAL, meals))

    messages: list[str] = []
    for kind, records in batches:
        for record in records:
            try:
                overdue = is_overdue(record, kind, now, threshold_minutes)
            except FormatError:
                logger.error(
                    "Skipping %s %s with malformed time %r",
                    kind.value, record.id, record.time,
                )
                continue
            if overdue:
                text = f"{subject.display_name} is due for a {_NOUNS[kind]} ({record.time})"
                if text not in messages:
                    messages.append(text)
    return messages
