from datetime import date, datetime

import pytest

from clock import Clock
from models import Settings, StudyPlan, StudySession, Task
from timeutil import format_minutes, hours_to_minutes, to_minutes

TODAY = date(2024, 1, 5)
NOW = datetime(2024, 1, 5, 8, 0)


def _session(task, number=1, hours=1.0, start="09:00", **fields) -> StudySession:
    task_id = task.id if isinstance(task, Task) else task
    end = format_minutes(to_minutes(start) + hours_to_minutes(hours))
    fields.setdefault("end_time", end)
    return StudySession(
        task_id=task_id,
        session_number=number,
        allocated_hours=hours,
        start_time=start,
        **fields,
    )


@pytest.fixture
def make_session():
    return _session


@pytest.fixture
def make_plan():
    def _plan(day, *sessions, locked=False) -> StudyPlan:
        return StudyPlan(date=day, planned_tasks=list(sessions), is_locked=locked)
    return _plan


@pytest.fixture
def make_task():
    def _task(title="Essay", hours=4.0, **fields) -> Task:
        return Task(id=title.lower().replace(" ", "-"), title=title, estimated_hours=hours, **fields)
    return _task


@pytest.fixture
def settings() -> Settings:
    return Settings(
        daily_available_hours=3,
        study_window_start="09:00",
        study_window_end="21:00",
        min_session_minutes=15,
        redistribution_horizon_days=3,
    )


@pytest.fixture
def clock() -> Clock:
    return Clock(frozen=NOW)
