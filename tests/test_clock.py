"""Tests for pawlog.core.clock — slot label parsing and zoned formatting."""

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from pawlog.core.clock import FormatError, format_zoned, parse_clock, sort_by_clock


@dataclass
class Slot:
    time: str
    tag: str = ""


class TestParseClock:
    def test_morning(self):
        assert parse_clock("9:00 AM") == 9 * 60

    def test_afternoon(self):
        assert parse_clock("2:00 PM") == 14 * 60

    def test_midnight(self):
        assert parse_clock("12:00 AM") == 0

    def test_noon(self):
        assert parse_clock("12:30 PM") == 12 * 60 + 30

    def test_late_evening(self):
        assert parse_clock("11:59 PM") == 23 * 60 + 59

    def test_monotonic_with_chronological_order(self):
        assert parse_clock("9:00 AM") < parse_clock("2:00 PM") < parse_clock("10:00 PM")

    @pytest.mark.parametrize("bad", [
        "",
        "9:00",
        "09:00 AM",
        "13:00 PM",
        "0:30 AM",
        "9:0 AM",
        "9:60 AM",
        "9:00 am",
        "9:00AM",
        " 9:00 AM",
        "nine o'clock",
    ])
    def test_malformed_raises(self, bad):
        with pytest.raises(FormatError):
            parse_clock(bad)

    def test_non_string_raises(self):
        with pytest.raises(FormatError):
            parse_clock(None)

    def test_format_error_is_value_error(self):
        assert issubclass(FormatError, ValueError)


class TestSortByClock:
    def test_sorts_chronologically_not_lexically(self):
        slots = [Slot("10:00 PM"), Slot("2:00 PM"), Slot("9:00 AM"), Slot("6:00 PM")]
        assert [s.time for s in sort_by_clock(slots)] == [
            "9:00 AM", "2:00 PM", "6:00 PM", "10:00 PM",
        ]

    def test_idempotent(self):
        slots = [Slot("6:00 PM"), Slot("9:00 AM"), Slot("2:00 PM")]
        once = sort_by_clock(slots)
        assert sort_by_clock(once) == once

    def test_ties_keep_input_order(self):
        slots = [Slot("2:00 PM", "a"), Slot("9:00 AM", "b"), Slot("2:00 PM", "c")]
        assert [s.tag for s in sort_by_clock(slots)] == ["b", "a", "c"]

    def test_malformed_dropped_by_default(self):
        slots = [Slot("2:00 PM"), Slot("garbage"), Slot("9:00 AM")]
        assert [s.time for s in sort_by_clock(slots)] == ["9:00 AM", "2:00 PM"]

    def test_malformed_raises_when_strict(self):
        with pytest.raises(FormatError):
            sort_by_clock([Slot("9:00 AM"), Slot("25:00 PM")], strict=True)

    def test_returns_new_list(self):
        slots = [Slot("2:00 PM"), Slot("9:00 AM")]
        sort_by_clock(slots)
        assert slots[0].time == "2:00 PM"


class TestFormatZoned:
    def test_daylight_saving_offset(self):
        # July: New York is UTC-4
        instant = datetime(2026, 7, 1, 16, 5, tzinfo=timezone.utc)
        assert format_zoned(instant, "America/New_York") == "12:05 PM"

    def test_standard_time_offset(self):
        # January: New York is UTC-5
        instant = datetime(2026, 1, 15, 14, 0, tzinfo=timezone.utc)
        assert format_zoned(instant, "America/New_York") == "9:00 AM"

    def test_with_seconds(self):
        instant = datetime(2026, 1, 15, 5, 7, 9, tzinfo=timezone.utc)
        assert format_zoned(instant, "America/New_York", seconds=True) == "12:07:09 AM"

    def test_naive_is_treated_as_utc(self):
        assert format_zoned(datetime(2026, 1, 15, 14, 0)) == "9:00 AM"

    def test_other_zone(self):
        instant = datetime(2026, 1, 15, 14, 0, tzinfo=timezone.utc)
        assert format_zoned(instant, "Asia/Tokyo") == "11:00 PM"
