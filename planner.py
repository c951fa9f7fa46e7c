from __future__ import annotations
import logging
from datetime import date, datetime, time
from typing import Dict, Iterable, List, NamedTuple, Optional
from models import FixedCommitment, Settings, StudyPlan, StudySession, Task
from status import MISSED, classify_session, is_completed
from timeutil import Interval, hours_to_minutes, to_minutes

logger = logging.getLogger(__name__)


class MissedSession(NamedTuple):
    session: StudySession
    plan_date: date
    task: Task


def _live_sessions(plan: StudyPlan) -> List[StudySession]:
    return [s for s in plan.planned_tasks if s.status != "skipped"]


def scheduled_hours_by_task(plans: Iterable[StudyPlan]) -> Dict[str, float]:
    scheduled: Dict[str, float] = {}
    for plan in plans:
        for session in _live_sessions(plan):
            scheduled[session.task_id] = scheduled.get(session.task_id, 0.0) + session.allocated_hours
    return scheduled


def unscheduled_hours_by_task(tasks: List[Task], plans: List[StudyPlan]) -> Dict[str, float]:
    scheduled = scheduled_hours_by_task(plans)
    return {
        t.id: max(0.0, t.estimated_hours - scheduled.get(t.id, 0.0))
        for t in tasks
        if t.status == "pending"
    }


def compute_unscheduled_hours(tasks: List[Task], plans: List[StudyPlan]) -> float:
    """
    Effort of pending tasks not yet covered by any live (non-skipped) session.
    Always recomputed from the current plan set.
    """
    return sum(unscheduled_hours_by_task(tasks, plans).values())


def collect_missed(tasks: List[Task], plans: List[StudyPlan], today: date) -> List[MissedSession]:
    """
    Worklist of missed sessions whose task is still pending, oldest day first,
    keeping each day's session order. Read-only.
    """
    by_id = {t.id: t for t in tasks}
    start_of_today = datetime.combine(today, time.min)
    missed: List[MissedSession] = []
    for plan in sorted(plans, key=lambda p: p.date):
        if plan.date >= today:
            continue
        for session in plan.planned_tasks:
            if classify_session(session, plan.date, start_of_today) != MISSED:
                continue
            task = by_id.get(session.task_id)
            if task is None:
                logger.debug("Session %s on %s refers to unknown task %s; ignoring.",
                             session.session_number, plan.date, session.task_id)
                continue
            if task.status != "pending":
                continue
            missed.append(MissedSession(session, plan.date, task))
    return missed


def find_plan(plans: List[StudyPlan], plan_date: date) -> Optional[StudyPlan]:
    for plan in plans:
        if plan.date == plan_date:
            return plan
    return None


def allocated_minutes(plan: Optional[StudyPlan]) -> int:
    if plan is None:
        return 0
    return sum(hours_to_minutes(s.allocated_hours) for s in _live_sessions(plan))


def free_capacity_minutes(plan: Optional[StudyPlan], day: date, settings: Settings) -> int:
    if day.weekday() in settings.rest_days:
        return 0
    budget = hours_to_minutes(settings.daily_available_hours)
    return max(0, budget - allocated_minutes(plan))


def occupied_intervals(
    plan: Optional[StudyPlan],
    day: date,
    commitments: Iterable[FixedCommitment] = (),
    buffer_minutes: int = 0,
) -> List[Interval]:
    """
    Intervals already taken on `day`: live sessions plus commitments that
    apply to the day, each widened by `buffer_minutes` on both sides.
    Sessions with unreadable times take no interval.
    """
    busy: List[Interval] = []
    if plan is not None:
        for session in _live_sessions(plan):
            start = to_minutes(session.start_time)
            end = to_minutes(session.end_time)
            if start is None or end is None or end <= start:
                continue
            busy.append((start - buffer_minutes, end + buffer_minutes))
    for commitment in commitments:
        if not commitment.applies_to(day):
            continue
        start = to_minutes(commitment.start_time)
        end = to_minutes(commitment.end_time)
        if end <= start:
            continue
        busy.append((start - buffer_minutes, end + buffer_minutes))
    return sorted(busy)


def next_session_number(plans: Iterable[StudyPlan], task_id: str) -> int:
    highest = 0
    for plan in plans:
        for session in plan.planned_tasks:
            if session.task_id == task_id:
                highest = max(highest, session.session_number)
    return highest + 1


def day_hours(plan: StudyPlan) -> float:
    return sum(s.allocated_hours for s in _live_sessions(plan))


def summarize_plans(tasks: List[Task], plans: List[StudyPlan]) -> dict:
    return {
        "total_sessions": sum(len(_live_sessions(p)) for p in plans),
        "total_hours": round(sum(day_hours(p) for p in plans), 2),
        "completed_sessions": sum(1 for p in plans for s in p.planned_tasks if is_completed(s)),
        "unscheduled_hours": round(compute_unscheduled_hours(tasks, plans), 2),
    }


def format_hours(hours: float) -> str:
    minutes = hours_to_minutes(hours)
    h, m = divmod(minutes, 60)
    if h and m:
        return f"{h}h {m}m"
    if h:
        return f"{h}h"
    return f"{m}m"
