from __future__ import annotations
import logging
import threading
from datetime import date
from pathlib import Path
from typing import List, Optional
from clock import Clock
from models import AppState, FixedCommitment, RedistributionMode, StudySession
from plan_actions import (
    delete_session,
    mark_done,
    reschedule_session,
    skip_session,
    toggle_lock,
)
from planner import MissedSession, collect_missed, compute_unscheduled_hours, summarize_plans
from redistribution import RedistributionResult, redistribute
from status import DisplayStatus, classify_session
from storage import load_state, save_state
from timeutil import coerce_date

logger = logging.getLogger(__name__)


class StudyPlanService:
    """
    Single owner of a plan set. Mutations are serialized through one lock;
    queries are pure functions over the current state.
    """

    def __init__(self, state: Optional[AppState] = None, clock: Optional[Clock] = None,
                 path: Path | str | None = None) -> None:
        self.state = state if state is not None else AppState()
        self.clock = clock or Clock()
        self.path = path
        self._lock = threading.RLock()

    @classmethod
    def load(cls, path: Path | str | None = None, clock: Optional[Clock] = None) -> "StudyPlanService":
        return cls(load_state(path), clock=clock, path=path)

    def save(self) -> None:
        with self._lock:
            save_state(self.state, self.path)

    # Queries

    def classify_session(self, session: StudySession, plan_date: date | str) -> DisplayStatus:
        return classify_session(session, coerce_date(plan_date), self.clock.now())

    def compute_unscheduled_hours(self) -> float:
        return compute_unscheduled_hours(self.state.tasks, self.state.plans)

    def collect_missed(self) -> List[MissedSession]:
        return collect_missed(self.state.tasks, self.state.plans, self.clock.today())

    def summary(self) -> dict:
        return summarize_plans(self.state.tasks, self.state.plans)

    # Mutations

    def redistribute(self, mode: Optional[RedistributionMode] = None,
                     worklist: Optional[List[MissedSession]] = None) -> RedistributionResult:
        with self._lock:
            mode = mode or self.state.settings.default_redistribution_mode
            if worklist is None:
                worklist = self.collect_missed()
            return redistribute(
                worklist,
                self.state.plans,
                self.state.tasks,
                self.state.settings,
                self.clock.now(),
                mode=mode,
                commitments=self.state.commitments,
            )

    def toggle_lock(self, plan_date: date | str) -> bool:
        with self._lock:
            return toggle_lock(self.state.plans, plan_date)

    def mark_done(self, plan_date: date | str, session_number: int,
                  task_id: Optional[str] = None) -> StudySession:
        with self._lock:
            return mark_done(self.state.plans, plan_date, session_number, self.clock.now(), task_id)

    def skip(self, plan_date: date | str, session_number: int, task_id: str) -> StudySession:
        with self._lock:
            return skip_session(self.state.plans, plan_date, session_number, task_id)

    def reschedule(self, plan_date: date | str, session_number: int, task_id: str,
                   new_start_time: str) -> StudySession:
        with self._lock:
            return reschedule_session(
                self.state.plans, plan_date, session_number, task_id, new_start_time, self.clock.now()
            )

    def delete(self, plan_date: date | str, session_number: int, task_id: str) -> StudySession:
        with self._lock:
            return delete_session(self.state.plans, plan_date, session_number, task_id)

    def add_commitments(self, commitments: List[FixedCommitment]) -> None:
        with self._lock:
            self.state.commitments.extend(commitments)
            logger.info("Added %d fixed commitments", len(commitments))
