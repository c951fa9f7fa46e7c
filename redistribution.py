from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from errors import LockedDayError, NoCapacityError, NotFoundError, PlannerError
from models import FixedCommitment, RedistributionMode, Settings, StudyPlan, StudySession, Task
from plan_actions import require_unlocked
from planner import (
    MissedSession,
    find_plan,
    free_capacity_minutes,
    next_session_number,
    occupied_intervals,
    unscheduled_hours_by_task,
)
from status import MISSED, classify_session
from timeutil import (
    MINUTES_PER_DAY,
    Interval,
    format_minutes,
    free_gaps,
    hours_to_minutes,
    minutes_to_hours,
    to_minutes,
)

logger = logging.getLogger(__name__)

MODES = ("enhanced", "legacy")


@dataclass
class Placement:
    plan_date: date
    session: StudySession
    source_date: date
    source_session_number: int


@dataclass
class UnplacedItem:
    item: MissedSession
    remaining_hours: float
    error: PlannerError


@dataclass
class RedistributionResult:
    mode: str
    placements: List[Placement] = field(default_factory=list)
    unplaced: List[UnplacedItem] = field(default_factory=list)
    superseded: List[MissedSession] = field(default_factory=list)

    @property
    def placed_count(self) -> int:
        return len(self.superseded)

    @property
    def unplaced_count(self) -> int:
        return len(self.unplaced)

    def summary(self) -> str:
        parts = []
        if self.placed_count:
            noun = "session" if self.placed_count == 1 else "sessions"
            parts.append(f"{self.placed_count} missed {noun} redistributed")
        if self.unplaced_count:
            noun = "session" if self.unplaced_count == 1 else "sessions"
            parts.append(f"{self.unplaced_count} {noun} could not be rescheduled")
        return "; ".join(parts) or "Nothing to redistribute"


class _DayBook:
    """Live view of candidate days. Every read goes back to the plan list."""

    def __init__(
        self,
        plans: List[StudyPlan],
        settings: Settings,
        now: datetime,
        commitments: Iterable[FixedCommitment],
    ) -> None:
        self.plans = plans
        self.settings = settings
        self.now = now
        self.today = now.date()
        self.commitments = list(commitments)

    def days(self) -> List[date]:
        return [self.today + timedelta(days=i)
                for i in range(self.settings.redistribution_horizon_days)]

    def plan(self, day: date) -> Optional[StudyPlan]:
        return find_plan(self.plans, day)

    def is_locked(self, day: date) -> bool:
        plan = self.plan(day)
        return plan is not None and plan.is_locked

    def capacity(self, day: date) -> int:
        return free_capacity_minutes(self.plan(day), day, self.settings)

    def window(self, day: date) -> Interval:
        start = to_minutes(self.settings.study_window_start)
        end = to_minutes(self.settings.study_window_end)
        if day == self.today:
            start = max(start, self.now.hour * 60 + self.now.minute)
        return (start, end)

    def gaps(self, day: date) -> List[Interval]:
        busy = occupied_intervals(self.plan(day), day, self.commitments, self.settings.buffer_minutes)
        return [g for g in free_gaps(self.window(day), busy) if g[1] > g[0]]

    def append_start(self, day: date) -> int:
        start = to_minutes(self.settings.study_window_start)
        if day == self.today:
            start = max(start, self.now.hour * 60 + self.now.minute)
        plan = self.plan(day)
        if plan is not None:
            for s in plan.planned_tasks:
                end = to_minutes(s.end_time)
                if s.status != "skipped" and end is not None:
                    start = max(start, end)
        return start

    def commit(self, day: date, task: Task, start: int, minutes: int) -> Optional[StudySession]:
        """Place one session on `day`, re-checking the day lock right before writing."""
        if day < self.today:
            return None
        plan = self.plan(day)
        if plan is None:
            plan = StudyPlan(date=day)
            self.plans.append(plan)
        try:
            require_unlocked(plan)
        except LockedDayError:
            logger.info("%s became locked during redistribution; trying the next day.", day)
            return None
        session = StudySession(
            task_id=task.id,
            session_number=next_session_number(self.plans, task.id),
            allocated_hours=minutes_to_hours(minutes),
            start_time=format_minutes(start),
            end_time=format_minutes(start + minutes),
            status="scheduled",
            done=False,
            is_manual_override=False,
        )
        plan.planned_tasks.append(session)
        return session


def _smallest_piece(remaining: int, settings: Settings) -> int:
    return min(settings.min_session_minutes, remaining)


def _place_legacy(book: _DayBook, item: MissedSession, needed: int) -> Tuple[List[Tuple[date, StudySession]], int]:
    placed: List[Tuple[date, StudySession]] = []
    remaining = needed
    for day in book.days():
        if remaining <= 0:
            break
        if book.is_locked(day):
            continue
        # Any free capacity counts, but a block never starts before now or runs past midnight.
        start = book.append_start(day)
        piece = min(remaining, book.capacity(day), MINUTES_PER_DAY - 1 - start)
        if piece <= 0:
            continue
        session = book.commit(day, item.task, start, piece)
        if session is None:
            continue
        placed.append((day, session))
        remaining -= piece
    return placed, remaining


def _place_enhanced(book: _DayBook, item: MissedSession, needed: int) -> Tuple[List[Tuple[date, StudySession]], int]:
    # Earliest day that takes the whole block in one conflict-free slot.
    for day in book.days():
        if book.is_locked(day) or book.capacity(day) < needed:
            continue
        slot = next((g for g in book.gaps(day) if g[1] - g[0] >= needed), None)
        if slot is None:
            continue
        session = book.commit(day, item.task, slot[0], needed)
        if session is not None:
            return [(day, session)], 0

    # Otherwise split across days, one piece per day in its longest free gap.
    placed: List[Tuple[date, StudySession]] = []
    remaining = needed
    for day in book.days():
        if remaining <= 0:
            break
        if book.is_locked(day):
            continue
        capacity = book.capacity(day)
        gaps = book.gaps(day)
        if capacity <= 0 or not gaps:
            continue
        longest = max(gaps, key=lambda g: g[1] - g[0])
        piece = min(remaining, capacity, longest[1] - longest[0])
        if piece <= 0 or piece < _smallest_piece(remaining, book.settings):
            continue
        session = book.commit(day, item.task, longest[0], piece)
        if session is None:
            continue
        placed.append((day, session))
        remaining -= piece
    return placed, remaining


def _priority_order(worklist: List[MissedSession], tasks: List[Task], plans: List[StudyPlan]) -> List[MissedSession]:
    unscheduled: Dict[str, float] = unscheduled_hours_by_task(tasks, plans)
    return sorted(
        worklist,
        key=lambda m: (not m.task.importance, m.plan_date, -unscheduled.get(m.task.id, 0.0)),
    )


def _source_problem(book: _DayBook, item: MissedSession) -> Optional[PlannerError]:
    origin = book.plan(item.plan_date)
    if origin is None or not any(s is item.session for s in origin.planned_tasks):
        return NotFoundError(
            f"Session {item.session.session_number} of {item.task.title} is no longer on {item.plan_date}."
        )
    if origin.is_locked:
        return LockedDayError(origin.date)
    return None


def redistribute(
    worklist: List[MissedSession],
    plans: List[StudyPlan],
    tasks: List[Task],
    settings: Settings,
    now: datetime,
    mode: RedistributionMode = "enhanced",
    commitments: Iterable[FixedCommitment] = (),
) -> RedistributionResult:
    """
    Move missed sessions into future unlocked capacity.

    Placements are committed one by one and are not rolled back when a later
    item fails. Items that cannot be (fully) placed come back in
    `result.unplaced`. A fully placed original is marked skipped. A partly
    placed one keeps only its unplaced hours so it resurfaces as missed.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown redistribution mode {mode!r}; expected one of {MODES}.")

    book = _DayBook(plans, settings, now, commitments)
    result = RedistributionResult(mode=mode)
    ordered = _priority_order(worklist, tasks, plans) if mode == "enhanced" else list(worklist)
    place = _place_enhanced if mode == "enhanced" else _place_legacy
    tasks_by_id = {t.id: t for t in tasks}

    for item in ordered:
        current = tasks_by_id.get(item.task.id)
        if current is None or current.status != "pending":
            logger.info("Task %s is no longer pending; leaving its missed session alone.", item.task.title)
            continue
        if classify_session(item.session, item.plan_date, now) != MISSED:
            logger.debug("Session %s of %s is no longer missed; skipping.",
                         item.session.session_number, item.task.title)
            continue

        needed = max(1, hours_to_minutes(item.session.allocated_hours))
        problem = _source_problem(book, item)
        if problem is not None:
            result.unplaced.append(UnplacedItem(item, minutes_to_hours(needed), problem))
            continue

        placed, remaining = place(book, item, needed)
        for day, session in placed:
            result.placements.append(Placement(day, session, item.plan_date, item.session.session_number))

        if remaining <= 0:
            item.session.status = "skipped"
            result.superseded.append(item)
            continue

        leftover = minutes_to_hours(remaining)
        if placed:
            item.session.allocated_hours = leftover
            start = to_minutes(item.session.start_time)
            if start is not None:
                item.session.end_time = format_minutes(start + remaining)
        result.unplaced.append(UnplacedItem(item, leftover, NoCapacityError(item.task.title, leftover)))

    logger.info("Redistribution (%s): %s", mode, result.summary())
    return result
