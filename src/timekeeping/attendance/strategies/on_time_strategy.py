from __future__ import annotations

from datetime import datetime

from ...capture.model import Capture
from ...core.enums import AttendanceStatus
from ...organizations.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Clock-in at or before the late cutoff."""

    def decide_clock_in(self, *, now: datetime, capture: Capture, settings: AttendanceSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
