from __future__ import annotations


class PlannerError(ValueError):
    """Base class for plan-set operation failures."""


class NotFoundError(PlannerError):
    pass


class LockedDayError(PlannerError):
    def __init__(self, plan_date) -> None:
        super().__init__(f"{plan_date} is locked; unlock the day before changing it.")
        self.plan_date = plan_date


class InvalidTimeError(PlannerError):
    pass


class ImmutableSessionError(PlannerError):
    pass


class NoCapacityError(PlannerError):
    """Reported per item by redistribution; never raised out of it."""

    def __init__(self, task_title: str, remaining_hours: float) -> None:
        super().__init__(
            f"{task_title}: {remaining_hours:g}h could not be placed in any unlocked future day."
        )
        self.task_title = task_title
        self.remaining_hours = remaining_hours
