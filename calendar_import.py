from __future__ import annotations
from datetime import datetime, date, time, timedelta
from typing import List
from icalendar import Calendar
from models import FixedCommitment
from timeutil import format_minutes


def _normalize_to_datetime(value) -> datetime | None:
    dt_value = getattr(value, "dt", value)

    if isinstance(dt_value, date) and not isinstance(dt_value, datetime):
        dt_value = datetime.combine(dt_value, datetime.min.time())

    if isinstance(dt_value, datetime):
        if dt_value.tzinfo:
            dt_value = dt_value.astimezone().replace(tzinfo=None)
        return dt_value
    return None


def _split_by_day(title: str, start: datetime, end: datetime) -> List[FixedCommitment]:
    out: List[FixedCommitment] = []
    day = start.date()
    while datetime.combine(day, time.min) < end:
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)
        seg_start = max(start, day_start)
        seg_end = min(end, day_end)
        start_min = int((seg_start - day_start).total_seconds() // 60)
        end_min = int((seg_end - day_start).total_seconds() // 60)
        if end_min > start_min:
            out.append(FixedCommitment(
                title=title,
                start_time=format_minutes(start_min),
                end_time=format_minutes(end_min),
                specific_dates=[day],
            ))
        day = day + timedelta(days=1)
    return out


def parse_ics_bytes(data: bytes) -> List[FixedCommitment]:
    """
    Turn VEVENTs into one-off commitments, one per calendar day an event
    touches. A segment reaching midnight ends at 23:59.
    """
    cal = Calendar.from_ical(data)
    out: List[FixedCommitment] = []

    for component in cal.walk():
        if component.name != "VEVENT":
            continue

        summary = str(component.get("SUMMARY", "Untitled"))
        dtstart = component.get("DTSTART")
        dtend = component.get("DTEND")

        if not dtstart or not dtend:
            continue

        start_dt = _normalize_to_datetime(dtstart)
        end_dt = _normalize_to_datetime(dtend)

        if not start_dt or not end_dt or end_dt <= start_dt:
            continue

        out.extend(_split_by_day(summary, start_dt, end_dt))

    return sorted(out, key=lambda c: (c.specific_dates[0], c.start_time))
