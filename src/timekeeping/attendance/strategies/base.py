from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...capture.model import Capture
from ...core.enums import AttendanceStatus
from ...organizations.model import AttendanceSettings


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we classify a clock-in."""

    @abstractmethod
    def decide_clock_in(self, *, now: datetime, capture: Capture, settings: AttendanceSettings) -> StatusDecision:
        raise NotImplementedError
