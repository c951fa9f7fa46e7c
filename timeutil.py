from __future__ import annotations
import re
from datetime import date, datetime, time
from typing import List, Optional, Tuple

_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60

Interval = Tuple[int, int]


def parse_hhmm(value: object) -> Optional[time]:
    if not isinstance(value, str):
        return None
    match = _HHMM.match(value.strip())
    if not match:
        return None
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def to_minutes(value: object) -> Optional[int]:
    """Minutes since midnight for an "HH:MM" string, or None when malformed."""
    parsed = parse_hhmm(value)
    if parsed is None:
        return None
    return parsed.hour * 60 + parsed.minute


def format_minutes(minutes: int) -> str:
    minutes = max(0, min(MINUTES_PER_DAY - 1, int(minutes)))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * 60))


def minutes_to_hours(minutes: int) -> float:
    return round(minutes / 60, 4)


def coerce_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"Expected a date or ISO date string, got {type(value).__name__}")


def free_gaps(window: Interval, occupied: List[Interval]) -> List[Interval]:
    """
    Return the sub-intervals of `window` not covered by any occupied interval.
    Intervals are half-open [start, end) in minutes since midnight.
    """
    start, end = window
    gaps: List[Interval] = []
    cursor = start
    for occ_start, occ_end in sorted(occupied):
        if occ_end <= cursor:
            continue
        if occ_start >= end:
            break
        if occ_start > cursor:
            gaps.append((cursor, occ_start))
        cursor = max(cursor, occ_end)
        if cursor >= end:
            break
    if cursor < end:
        gaps.append((cursor, end))
    return gaps
