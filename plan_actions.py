from __future__ import annotations
import logging
from datetime import date, datetime
from typing import List, Optional
from errors import ImmutableSessionError, InvalidTimeError, LockedDayError, NotFoundError
from models import StudyPlan, StudySession
from status import COMPLETED, MISSED, SKIPPED, classify_session
from timeutil import MINUTES_PER_DAY, coerce_date, format_minutes, hours_to_minutes, to_minutes

logger = logging.getLogger(__name__)


def require_unlocked(plan: StudyPlan) -> None:
    """Day lock guard: every mutation of a plan's sessions goes through here."""
    if plan.is_locked:
        raise LockedDayError(plan.date)


def get_plan(plans: List[StudyPlan], plan_date: date | str) -> StudyPlan:
    plan_date = coerce_date(plan_date)
    for plan in plans:
        if plan.date == plan_date:
            return plan
    raise NotFoundError(f"No study plan for {plan_date.isoformat()}.")


def get_session(plan: StudyPlan, session_number: int, task_id: Optional[str] = None) -> StudySession:
    matches = [
        s for s in plan.planned_tasks
        if s.session_number == session_number and (task_id is None or s.task_id == task_id)
    ]
    if not matches:
        raise NotFoundError(
            f"No session {session_number}"
            + (f" for task {task_id}" if task_id else "")
            + f" on {plan.date.isoformat()}."
        )
    if len(matches) > 1:
        raise NotFoundError(
            f"Session {session_number} on {plan.date.isoformat()} is ambiguous; pass the task id."
        )
    return matches[0]


def toggle_lock(plans: List[StudyPlan], plan_date: date | str) -> bool:
    plan = get_plan(plans, plan_date)
    plan.is_locked = not plan.is_locked
    logger.info("%s %s", "Locked" if plan.is_locked else "Unlocked", plan.date.isoformat())
    return plan.is_locked


def mark_done(
    plans: List[StudyPlan],
    plan_date: date | str,
    session_number: int,
    now: datetime,
    task_id: Optional[str] = None,
) -> StudySession:
    plan = get_plan(plans, plan_date)
    session = get_session(plan, session_number, task_id)
    require_unlocked(plan)
    state = classify_session(session, plan.date, now)
    if state in (MISSED, SKIPPED):
        raise ImmutableSessionError(f"A {state} session cannot be marked done.")
    session.done = True
    session.status = "completed"
    return session


def skip_session(
    plans: List[StudyPlan],
    plan_date: date | str,
    session_number: int,
    task_id: str,
) -> StudySession:
    plan = get_plan(plans, plan_date)
    session = get_session(plan, session_number, task_id)
    require_unlocked(plan)
    if session.done or session.status == "completed":
        raise ImmutableSessionError("A completed session cannot be skipped.")
    session.status = "skipped"
    return session


def reschedule_session(
    plans: List[StudyPlan],
    plan_date: date | str,
    session_number: int,
    task_id: str,
    new_start_time: str,
    now: datetime,
) -> StudySession:
    plan = get_plan(plans, plan_date)
    session = get_session(plan, session_number, task_id)
    require_unlocked(plan)

    if not new_start_time or not new_start_time.strip():
        raise InvalidTimeError("A new start time is required.")
    start = to_minutes(new_start_time)
    if start is None:
        raise InvalidTimeError(f"{new_start_time!r} is not a valid HH:MM time.")
    if plan.date < now.date():
        raise InvalidTimeError("Sessions on past days cannot be rescheduled.")

    state = classify_session(session, plan.date, now)
    if state in (COMPLETED, SKIPPED, MISSED):
        raise ImmutableSessionError(f"A {state} session cannot be rescheduled.")

    end = start + hours_to_minutes(session.allocated_hours)
    if end >= MINUTES_PER_DAY:
        raise InvalidTimeError("The session would run past midnight.")

    session.start_time = format_minutes(start)
    session.end_time = format_minutes(end)
    session.is_manual_override = True
    return session


def delete_session(
    plans: List[StudyPlan],
    plan_date: date | str,
    session_number: int,
    task_id: str,
) -> StudySession:
    plan = get_plan(plans, plan_date)
    session = get_session(plan, session_number, task_id)
    require_unlocked(plan)
    # The plan itself stays so its lock state survives an empty day.
    plan.planned_tasks = [s for s in plan.planned_tasks if s is not session]
    return session
