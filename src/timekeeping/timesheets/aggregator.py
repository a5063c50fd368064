from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from ..common.datetime_utils import month_bounds, parse_year_month
from .model import TaskTimerRecord
from .repository import TimesheetRepository


def total_milliseconds(records: Iterable[TaskTimerRecord], now: datetime) -> int:
    """Committed time plus the live elapsed time of running timers."""
    return sum(r.live_milliseconds(now) for r in records)


class TimesheetAggregator:
    """Per-actor totals, recomputed from the records on every query."""

    def __init__(self, timesheets: TimesheetRepository):
        self._timesheets = timesheets

    def daily_total(self, actor_id: int, work_date: date, *, now: datetime | None = None) -> int:
        now = now or datetime.now()
        return total_milliseconds(self._timesheets.list_for_actor(actor_id, start=work_date, end=work_date), now)

    def monthly_total(self, actor_id: int, year_month: str, *, now: datetime | None = None) -> int:
        now = now or datetime.now()
        first, last = month_bounds(*parse_year_month(year_month))
        return total_milliseconds(self._timesheets.list_for_actor(actor_id, start=first, end=last), now)
