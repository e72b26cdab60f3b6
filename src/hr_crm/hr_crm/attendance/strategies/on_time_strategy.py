from __future__ import annotations

from datetime import time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, by_hours


class OnTimeStrategy(AttendanceStrategy):
    """Clock-in before the late window."""

    def decide_checkin(self, *, in_time: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(self, *, in_time: time, hours: float) -> StatusDecision:
        return StatusDecision(status=by_hours(hours, AttendanceStatus.PRESENT))
