"""Tests for pawlog.core.overdue — strict minute-delta overdue policy."""

from datetime import datetime

import pytest

from pawlog.core.overdue import compute_overdue, is_overdue, minutes_past
from pawlog.data.models import DOGS, MealRecord, RecordKind, WalkRecord

RUDOLPH, RICKY = DOGS


def _walk(time="9:00 AM", peed=False, dog_id=1, record_id=1):
    return WalkRecord(id=record_id, date="2026-10-19", time=time, dog_id=dog_id, peed=peed)


def _meal(time="9:00 AM", completed=False, record_id=1):
    return MealRecord(id=record_id, date="2026-10-19", time=time, dog_id=2, completed=completed)


def _at(hour, minute, second=0):
    return datetime(2026, 10, 19, hour, minute, second)


class TestThreshold:
    def test_61_minutes_late_is_overdue(self):
        assert compute_overdue([_walk()], [], RUDOLPH, _at(10, 1)) == [
            "Rudolph is due for a walk (9:00 AM)",
        ]

    def test_59_minutes_late_is_not_overdue(self):
        assert compute_overdue([_walk()], [], RUDOLPH, _at(9, 59)) == []

    def test_exactly_60_minutes_is_not_overdue(self):
        assert compute_overdue([_walk()], [], RUDOLPH, _at(10, 0)) == []

    def test_one_second_past_60_minutes_is_overdue(self):
        assert is_overdue(_walk(), RecordKind.WALK, _at(10, 0, 1))

    def test_completed_never_overdue(self):
        assert compute_overdue([_walk(peed=True)], [], RUDOLPH, _at(23, 59)) == []

    def test_future_slot_not_overdue(self):
        assert compute_overdue([_walk("10:00 PM")], [], RUDOLPH, _at(9, 0)) == []

    def test_same_hour_many_minutes_late(self):
        # 2:00 PM slot at 3:45 PM: different hours but clearly late
        assert compute_overdue([_walk("2:00 PM")], [], RUDOLPH, _at(15, 45))

    def test_cross_hour_under_threshold(self):
        # 2:30 PM slot at 3:10 PM: hour numbers differ but only 40 minutes late
        assert compute_overdue([_walk("2:30 PM")], [], RUDOLPH, _at(15, 10)) == []

    def test_custom_threshold(self):
        assert compute_overdue([_walk()], [], RUDOLPH, _at(9, 31), threshold_minutes=30)

    def test_minutes_past_negative_before_slot(self):
        assert minutes_past("2:00 PM", _at(13, 0)) == -60


class TestWalkCompletion:
    def test_pooped_alone_does_not_clear_walk(self):
        walk = WalkRecord(id=1, date="2026-10-19", time="9:00 AM", dog_id=1, pooped=True)
        assert compute_overdue([walk], [], RUDOLPH, _at(12, 0))


class TestMeals:
    def test_meals_checked_for_meal_dog(self):
        messages = compute_overdue([], [_meal("2:00 PM")], RICKY, _at(16, 0))
        assert messages == ["Ricky is due for a meal (2:00 PM)"]

    def test_meals_ignored_for_other_dog(self):
        assert compute_overdue([], [_meal()], RUDOLPH, _at(16, 0)) == []

    def test_completed_meal_not_overdue(self):
        assert compute_overdue([], [_meal(completed=True)], RICKY, _at(16, 0)) == []


class TestMessages:
    def test_walks_then_meals_in_slot_order(self):
        walks = [_walk("9:00 AM", record_id=1), _walk("2:00 PM", record_id=2)]
        meals = [_meal("9:00 AM")]
        assert compute_overdue(walks, meals, RICKY, _at(16, 0)) == [
            "Ricky is due for a walk (9:00 AM)",
            "Ricky is due for a walk (2:00 PM)",
            "Ricky is due for a meal (9:00 AM)",
        ]

    def test_duplicates_suppressed(self):
        walks = [_walk("9:00 AM", record_id=1), _walk("9:00 AM", record_id=2)]
        assert len(compute_overdue(walks, [], RUDOLPH, _at(12, 0))) == 1

    def test_malformed_time_skipped(self):
        walks = [_walk("garbage", record_id=1), _walk("9:00 AM", record_id=2)]
        assert compute_overdue(walks, [], RUDOLPH, _at(12, 0)) == [
            "Rudolph is due for a walk (9:00 AM)",
        ]

    @pytest.mark.parametrize("now", [_at(0, 0), _at(0, 59)])
    def test_nothing_overdue_just_after_midnight(self, now):
        walks = [_walk(t, record_id=i) for i, t in enumerate(["9:00 AM", "10:00 PM"])]
        assert compute_overdue(walks, [], RUDOLPH, now) == []
