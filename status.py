from __future__ import annotations
from datetime import date, datetime
from typing import Literal
from models import StudySession
from timeutil import to_minutes

DisplayStatus = Literal["completed", "skipped", "missed", "overdue", "rescheduled", "scheduled"]

COMPLETED = "completed"
SKIPPED = "skipped"
MISSED = "missed"
OVERDUE = "overdue"
RESCHEDULED = "rescheduled"
SCHEDULED = "scheduled"

TERMINAL = (COMPLETED, SKIPPED)


def is_completed(session: StudySession) -> bool:
    # `done` predates `status`; either one marks the session finished.
    return session.done or session.status == "completed"


def classify_session(session: StudySession, plan_date: date, now: datetime) -> DisplayStatus:
    """
    Derive the displayed lifecycle state of a session.

    Terminal flags (completed, skipped) win over anything time-based, so a
    finished session never turns into "missed". Missed and overdue are
    recomputed from `now` on every call and never stored.
    """
    if is_completed(session):
        return COMPLETED
    if session.status == "skipped":
        return SKIPPED

    today = now.date()
    if plan_date < today:
        return MISSED
    if plan_date == today:
        end = to_minutes(session.end_time)
        if end is not None and now.hour * 60 + now.minute >= end:
            return OVERDUE

    if session.is_manual_override:
        return RESCHEDULED
    return SCHEDULED


def is_terminal(status: str) -> bool:
    return status in TERMINAL
