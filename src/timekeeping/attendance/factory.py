from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..organizations.model import AttendanceSettings
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy
from .strategies.pending_strategy import PendingReviewStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_clock_in(
        self,
        *,
        now: datetime,
        within_geofence: Optional[bool],
        settings: AttendanceSettings,
    ) -> AttendanceStrategy:
        # Unknown location (None) is not penalized; only a confirmed miss is.
        if within_geofence is False:
            return PendingReviewStrategy()

        if now <= settings.late_cutoff_on(now.date()):
            return OnTimeStrategy()
        return LateStrategy()
