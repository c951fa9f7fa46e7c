from datetime import date, datetime, timedelta

import pytest

from status import classify_session, is_terminal

from conftest import NOW, TODAY


def test_done_flag_wins_over_past_date(make_session):
    session = make_session("t1", done=True)
    assert classify_session(session, TODAY - timedelta(days=3), NOW) == "completed"


def test_completed_status_without_done_flag(make_session):
    session = make_session("t1", status="completed")
    assert classify_session(session, TODAY, NOW) == "completed"


def test_skipped_beats_time(make_session):
    session = make_session("t1", status="skipped")
    assert classify_session(session, TODAY - timedelta(days=1), NOW) == "skipped"


def test_past_day_is_missed(make_session):
    session = make_session("t1", is_manual_override=True)
    assert classify_session(session, date(2024, 1, 1), NOW) == "missed"


@pytest.mark.parametrize("clock_time, expected", [
    (datetime(2024, 1, 5, 9, 59), "scheduled"),
    (datetime(2024, 1, 5, 10, 0), "overdue"),
    (datetime(2024, 1, 5, 23, 0), "overdue"),
])
def test_overdue_is_same_day_past_end(make_session, clock_time, expected):
    session = make_session("t1", start="09:00", hours=1.0)
    assert classify_session(session, TODAY, clock_time) == expected


def test_manual_override_shows_rescheduled(make_session):
    session = make_session("t1", is_manual_override=True)
    assert classify_session(session, TODAY + timedelta(days=1), NOW) == "rescheduled"


def test_malformed_end_time_never_overdue(make_session):
    session = make_session("t1", end_time="late")
    assert classify_session(session, TODAY, datetime(2024, 1, 5, 23, 59)) == "scheduled"


def test_classification_is_idempotent(make_session):
    session = make_session("t1")
    results = {classify_session(session, date(2024, 1, 2), NOW) for _ in range(5)}
    assert results == {"missed"}


@pytest.mark.parametrize("fields, expected", [
    ({"done": True}, "completed"),
    ({"status": "completed"}, "completed"),
    ({"status": "skipped"}, "skipped"),
])
def test_terminal_states_are_sticky(make_session, fields, expected):
    session = make_session("t1", **fields)
    for offset in (-30, -1, 0, 1, 30):
        for moment in (datetime(2024, 1, 5, 0, 0), datetime(2024, 1, 5, 23, 59)):
            assert classify_session(session, TODAY + timedelta(days=offset), moment) == expected
    assert is_terminal(expected)


def test_non_terminal_states():
    assert not is_terminal("missed")
    assert not is_terminal("scheduled")
