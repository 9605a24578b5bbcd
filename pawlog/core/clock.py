"""Clock helpers — 12-hour slot labels and zoned wall-clock time.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from typing import Iterable, TypeVar
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/New_York"

_CLOCK_RE = re.compile(r"(1[0-2]|[1-9]):([0-5]\d) (AM|PM)")

T = TypeVar("T")


class FormatError(ValueError):
    """Raised when a slot time is not of the form "H:MM AM|PM"."""


def parse_clock(text: str) -> int:
    """Return minutes since midnight for a label like "9:00 AM".

    12 AM is midnight, 12 PM is noon. Raises FormatError on any other shape.
    """
    match = _CLOCK_RE.fullmatch(text) if isinstance(text, str) else None
    if match is None:
        raise FormatError(f"Unparseable clock time: {text!r}")

    hour = int(match.group(1)) % 12
    if match.group(3) == "PM":
        hour += 12
    return hour * 60 + int(match.group(2))


def sort_by_clock(items: Iterable[T], strict: bool = False) -> list[T]:
    """Stable ascending sort of items by their `.time` label.

    Items with a malformed time raise FormatError when strict, otherwise they
    are logged and dropped so one bad row can't break the whole schedule.
    """
    keyed: list[tuple[int, T]] = []
    for item in items:
        try:
            keyed.append((parse_clock(item.time), item))
        except FormatError:
            if strict:
                raise
            logger.error("Skipping record with malformed time %r", item.time)
    keyed.sort(key=lambda pair: pair[0])
    return [item for _, item in keyed]


def format_zoned(
    instant: datetime,
    tz_name: str = DEFAULT_TIMEZONE,
    seconds: bool = False,
) -> str:
    """Render an instant as "h:mm a" (or "h:mm:ss a") in the named zone.

    Naive datetimes are taken to be UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(ZoneInfo(tz_name))

    hour = local.hour % 12 or 12
    period = "AM" if local.hour < 12 else "PM"
    if seconds:
        return f"{hour}:{local.minute:02d}:{local.second:02d} {period}"
    return f"{hour}:{local.minute:02d} {period}"


def local_now(tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Current wall-clock time in the configured zone."""
    return datetime.now(ZoneInfo(tz_name))


def local_today(tz_name: str = DEFAULT_TIMEZONE) -> date:
    """Current calendar date in the configured zone."""
    return local_now(tz_name).date()
