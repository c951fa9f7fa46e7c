from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import date
from typing import List, Literal, Optional
from uuid import uuid4
from timeutil import to_minutes

# A field named `date` would shadow the type inside the class body.
PlanDay = date

TaskStatus = Literal["pending", "completed", "cancelled"]
SessionState = Literal["scheduled", "completed", "skipped"]
RedistributionMode = Literal["enhanced", "legacy"]


def _new_id() -> str:
    return str(uuid4())


def _check_hhmm(value: str) -> str:
    if to_minutes(value) is None:
        raise ValueError(f"Expected a HH:MM time, got {value!r}")
    return value.strip()


class Task(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    estimated_hours: float = Field(gt=0)
    status: TaskStatus = "pending"
    category: Optional[str] = None
    importance: bool = False
    deadline: Optional[date] = None


class StudySession(BaseModel):
    task_id: str
    session_number: int = Field(ge=1)
    allocated_hours: float = Field(gt=0)
    start_time: str = "09:00"
    end_time: str = "10:00"
    status: Optional[SessionState] = None
    done: bool = False
    is_manual_override: bool = False


class StudyPlan(BaseModel):
    id: str = Field(default_factory=_new_id)
    date: PlanDay
    planned_tasks: List[StudySession] = Field(default_factory=list)
    is_locked: bool = False


class FixedCommitment(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    start_time: str
    end_time: str
    days_of_week: List[int] = Field(default_factory=list)  # 0=Mon ... 6=Sun
    specific_dates: List[date] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: str) -> str:
        return _check_hhmm(value)

    def applies_to(self, day: date) -> bool:
        return day in self.specific_dates or day.weekday() in self.days_of_week


class Settings(BaseModel):
    daily_available_hours: float = Field(default=4.0, gt=0, le=24)
    rest_days: List[int] = Field(default_factory=list)  # 0=Mon ... 6=Sun
    study_window_start: str = "09:00"
    study_window_end: str = "21:00"
    buffer_minutes: int = Field(default=0, ge=0, le=120)
    min_session_minutes: int = Field(default=15, ge=1, le=240)
    redistribution_horizon_days: int = Field(default=14, ge=1, le=365)
    default_redistribution_mode: RedistributionMode = "enhanced"

    @field_validator("study_window_start", "study_window_end")
    @classmethod
    def check_window_times(cls, value: str) -> str:
        return _check_hhmm(value)

    @model_validator(mode="after")
    def check_window_order(self) -> "Settings":
        if to_minutes(self.study_window_end) <= to_minutes(self.study_window_start):
            raise ValueError("study_window_end must be after study_window_start")
        return self


class AppState(BaseModel):
    tasks: List[Task] = Field(default_factory=list)
    plans: List[StudyPlan] = Field(default_factory=list)
    commitments: List[FixedCommitment] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)
