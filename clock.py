from __future__ import annotations
from datetime import date, datetime
from typing import Callable, Optional


class Clock:
    """Supplies "now" and "today" to the planner. Tests pass a frozen datetime."""

    def __init__(self, frozen: Optional[datetime] = None,
                 source: Callable[[], datetime] = datetime.now) -> None:
        self._frozen = frozen
        self._source = source

    def now(self) -> datetime:
        if self._frozen is not None:
            return self._frozen
        return self._source()

    def today(self) -> date:
        return self.now().date()
