from __future__ import annotations

from datetime import time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, by_hours


class LateStrategy(AttendanceStrategy):
    """Late clock-in (09:10 to 09:30 inclusive)."""

    def decide_checkin(self, *, in_time: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)

    def decide_checkout(self, *, in_time: time, hours: float) -> StatusDecision:
        return StatusDecision(status=by_hours(hours, AttendanceStatus.LATE))
