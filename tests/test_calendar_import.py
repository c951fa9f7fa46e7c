from datetime import date

from calendar_import import parse_ics_bytes


def _calendar(*events: str) -> bytes:
    return ("BEGIN:VCALENDAR\nVERSION:2.0\n" + "".join(events) + "END:VCALENDAR\n").encode()


def _event(summary: str, start: str, end: str | None) -> str:
    lines = ["BEGIN:VEVENT", f"UID:{summary}", f"SUMMARY:{summary}", f"DTSTART:{start}"]
    if end:
        lines.append(f"DTEND:{end}")
    lines.append("END:VEVENT")
    return "\n".join(lines) + "\n"


def test_event_becomes_dated_commitment():
    commitments = parse_ics_bytes(_calendar(_event("Lecture", "20260302T100000", "20260302T120000")))
    assert len(commitments) == 1
    lecture = commitments[0]
    assert (lecture.title, lecture.start_time, lecture.end_time) == ("Lecture", "10:00", "12:00")
    assert lecture.specific_dates == [date(2026, 3, 2)]
    assert lecture.applies_to(date(2026, 3, 2))
    assert not lecture.applies_to(date(2026, 3, 9))


def test_overnight_event_is_split_per_day():
    commitments = parse_ics_bytes(_calendar(_event("Shift", "20260302T220000", "20260303T010000")))
    assert [(c.specific_dates[0], c.start_time, c.end_time) for c in commitments] == [
        (date(2026, 3, 2), "22:00", "23:59"),
        (date(2026, 3, 3), "00:00", "01:00"),
    ]


def test_events_without_end_are_ignored():
    data = _calendar(
        _event("Open ended", "20260302T100000", None),
        _event("Backwards", "20260302T120000", "20260302T100000"),
    )
    assert parse_ics_bytes(data) == []
