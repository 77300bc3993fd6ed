"""Hour-of-day and meal-period bucketing.

Linga sends the time of a sale in several shapes: a full ISO timestamp on
tickets (``saleOpenTime``), a separate zero-padded hour/minute pair on order
lines (``orderHour``/``orderMin``), and occasionally a bare ``"HH:MM"``
string. ``hour_of`` reduces all of them to an hour in [0, 23] or ``None``.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import pandas as pd

from linga_core.cleaning import strip_invisibles

HOURS_PER_DAY = 24

_BARE_HOUR_RE = re.compile(r"^\d{1,2}(?:\.0+)?$")
_LEADING_HOUR_RE = re.compile(r"^(\d{1,2})\s*:")
# A date or time separator between digits. Keywords such as "now" or "today"
# and bare digit runs ("2024", "0930") never reach the timestamp parser.
_TIMESTAMP_HINT_RE = re.compile(r"\d[-/T:]\d")


class Segment(str, Enum):
    """Meal periods used by the daily sales recap."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    OTHER = "Other"


# Report order of the segments
SEGMENTS: tuple[Segment, ...] = (Segment.BREAKFAST, Segment.LUNCH, Segment.DINNER, Segment.OTHER)


def _valid(hour: int) -> Optional[int]:
    return hour if 0 <= hour < HOURS_PER_DAY else None


def _hour_from_timestamp(ts: Any, tz: Optional[str]) -> Optional[int]:
    if isinstance(ts, pd.Timestamp) and pd.isna(ts):
        return None
    stamp = pd.Timestamp(ts)
    if tz is not None and stamp.tzinfo is not None:
        stamp = stamp.tz_convert(tz)
    return _valid(stamp.hour)


def _leading_hour(s: str) -> Optional[int]:
    match = _LEADING_HOUR_RE.match(s)
    if not match:
        return None
    return _valid(int(match.group(1)))


def _hour_from_value(value: Any, tz: Optional[str]) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, pd.Timestamp)):
        return _hour_from_timestamp(value, tz)
    if isinstance(value, int):
        return _valid(value)
    if isinstance(value, float):
        if pd.isna(value) or not value.is_integer():
            return None
        return _valid(int(value))

    s = strip_invisibles(value)
    if not s:
        return None
    if _BARE_HOUR_RE.match(s):
        return _valid(int(float(s)))

    if not _TIMESTAMP_HINT_RE.search(s):
        return None
    parsed = pd.to_datetime(s, errors="coerce")
    if not pd.isna(parsed):
        return _hour_from_timestamp(parsed, tz)
    return _leading_hour(s)


def hour_of(value: Any, fallback: Any = None, tz: Optional[str] = None) -> Optional[int]:
    """Extract the hour of day from a timestamp or an hour field.

    Resolution order:
    1. ``value`` as a datetime, an integer hour, a bare hour string (``"09"``)
       or a parseable date-time string
    2. the leading ``HH:`` token of ``value`` when it did not parse
    3. the same steps applied to ``fallback``

    Args:
        value: Primary field (timestamp string, datetime or hour).
        fallback: Secondary field used when the primary does not resolve.
        tz: Optional IANA zone; tz-aware timestamps are converted to it before
            the hour is read. Naive timestamps are taken as wall-clock time.

    Returns:
        Hour in [0, 23], or None when neither field resolves. Records with a
        None hour are left out of hour-bucketed aggregates only.

    Examples:
        >>> hour_of("2024-01-01T09:30:00")
        9
        >>> hour_of("14")
        14
        >>> hour_of("garbage", fallback="21:15")
        21
    """
    hour = _hour_from_value(value, tz)
    if hour is None and fallback is not None:
        hour = _hour_from_value(fallback, tz)
    return hour


def segment_of(hour: Optional[int]) -> Segment:
    """Classify an hour into a meal period.

    Breakfast is [6, 11), Lunch [11, 16), Dinner [16, 24); hours 0-5 and
    unresolved hours fall into Other.
    """
    if hour is None:
        return Segment.OTHER
    if 6 <= hour < 11:
        return Segment.BREAKFAST
    if 11 <= hour < 16:
        return Segment.LUNCH
    if 16 <= hour < 24:
        return Segment.DINNER
    return Segment.OTHER


def hour_label(hour: Optional[int]) -> str:
    """Chart label for an hour bucket, ``"9:00"`` style."""
    return "Unknown" if hour is None else f"{hour}:00"


def hour_labels() -> list[str]:
    """Labels for the 24 positional slots of an hourly series."""
    return [hour_label(h) for h in range(HOURS_PER_DAY)]


def clock_label(hour: Any, minute: Any) -> str:
    """Format an hour/minute pair as ``"HH:MM"`` for ledgers.

    Missing parts are rendered as ``"00"``; the hour is kept as sent.
    """
    h = strip_invisibles(hour) or "00"
    m = strip_invisibles(minute) or "00"
    return f"{h}:{m.zfill(2)}"
