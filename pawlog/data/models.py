"""
PawLog — Data Models.

Daily records live in the hosted backend (tables `walks` and `meals`);
these dataclasses are the in-memory view of one row each. Subjects and slot
catalogs are fixed in code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


@dataclass(frozen=True)
class Subject:
    """A tracked dog."""

    id: int
    display_name: str
    image_ref: str
    meals_enabled: bool = False   # only one dog is fed on this schedule


DOGS: tuple[Subject, ...] = (
    Subject(id=1, display_name="Rudolph", image_ref="/rudolph.jpg"),
    Subject(id=2, display_name="Ricky", image_ref="/ricky.jpg", meals_enabled=True),
)


def find_subject(key: str | int, subjects: tuple[Subject, ...] = DOGS) -> Subject | None:
    """Resolve a subject by id or case-insensitive display name."""
    text = str(key).strip()
    for subject in subjects:
        if text == str(subject.id) or text.lower() == subject.display_name.lower():
            return subject
    return None


@dataclass(frozen=True)
class ScheduleSlot:
    """A fixed time-of-day obligation, e.g. "9:00 AM"."""

    time: str


WALK_SLOTS: tuple[ScheduleSlot, ...] = (
    ScheduleSlot("9:00 AM"),
    ScheduleSlot("2:00 PM"),
    ScheduleSlot("6:00 PM"),
    ScheduleSlot("10:00 PM"),
)

MEAL_SLOTS: tuple[ScheduleSlot, ...] = (
    ScheduleSlot("9:00 AM"),
    ScheduleSlot("2:00 PM"),
    ScheduleSlot("6:00 PM"),
)


@dataclass
class WalkRecord:
    """One walk slot for one dog on one day."""

    id: int
    date: str          # ISO date YYYY-MM-DD
    time: str          # e.g. "2:00 PM"
    dog_id: int
    peed: bool = False
    pooped: bool = False

    @classmethod
    def from_row(cls, row: dict) -> WalkRecord:
        return cls(
            id=row["id"],
            date=row["date"],
            time=row["time"],
            dog_id=row["dog_id"],
            peed=bool(row.get("peed")),
            pooped=bool(row.get("pooped")),
        )

    def to_row(self) -> dict:
        return {
            "date": self.date,
            "time": self.time,
            "peed": self.peed,
            "pooped": self.pooped,
            "dog_id": self.dog_id,
        }


@dataclass
class MealRecord:
    """One meal slot for one dog on one day."""

    id: int
    date: str
    time: str
    dog_id: int
    completed: bool = False

    @classmethod
    def from_row(cls, row: dict) -> MealRecord:
        return cls(
            id=row["id"],
            date=row["date"],
            time=row["time"],
            dog_id=row["dog_id"],
            completed=bool(row.get("completed")),
        )

    def to_row(self) -> dict:
        return {
            "date": self.date,
            "time": self.time,
            "completed": self.completed,
            "dog_id": self.dog_id,
        }


DailyRecord = WalkRecord | MealRecord


class RecordKind(Enum):
    """Which daily table a record belongs to."""

    WALK = "walk"
    MEAL = "meal"

    @property
    def table(self) -> str:
        return "walks" if self is RecordKind.WALK else "meals"

    @property
    def status_fields(self) -> tuple[str, ...]:
        return ("peed", "pooped") if self is RecordKind.WALK else ("completed",)

    @property
    def completion_field(self) -> str:
        """The field whose truth marks the slot as handled for overdue checks."""
        return "peed" if self is RecordKind.WALK else "completed"

    @property
    def slots(self) -> tuple[ScheduleSlot, ...]:
        return WALK_SLOTS if self is RecordKind.WALK else MEAL_SLOTS

    @property
    def record_type(self) -> type[WalkRecord] | type[MealRecord]:
        return WalkRecord if self is RecordKind.WALK else MealRecord

    def new_record(self, record_id: int, day: str, time: str, dog_id: int) -> DailyRecord:
        """Build a record for a slot with every status field false."""
        return self.record_type(id=record_id, date=day, time=time, dog_id=dog_id)


@dataclass
class AggregatePoint:
    """Counts of completed actions in one bucket (day or month)."""

    label: str         # "Oct 19" for days, "Oct 2026" for months
    day: date          # first day of the bucket
    pee_count: int = 0
    poop_count: int = 0


@dataclass
class PeriodCounts:
    pee_count: int = 0
    poop_count: int = 0


@dataclass
class MonthlyComparison:
    """Current vs previous calendar month totals."""

    current: PeriodCounts
    previous: PeriodCounts

    @property
    def pee_change(self) -> float:
        from pawlog.core.reporter import percentage_change

        return percentage_change(self.current.pee_count, self.previous.pee_count)

    @property
    def poop_change(self) -> float:
        from pawlog.core.reporter import percentage_change

        return percentage_change(self.current.poop_count, self.previous.poop_count)
