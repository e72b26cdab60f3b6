from __future__ import annotations

from datetime import time

from ...core.constants import HALF_DAY_HOURS
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Clock-in after 09:30 but before 10:00; at best a half day."""

    def decide_checkin(self, *, in_time: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALFDAY)

    def decide_checkout(self, *, in_time: time, hours: float) -> StatusDecision:
        status = AttendanceStatus.HALFDAY if hours >= HALF_DAY_HOURS else AttendanceStatus.ABSENT
        return StatusDecision(status=status)


class AfterCutoffStrategy(AttendanceStrategy):
    """Clock-in at or after 10:00 is always a half day."""

    def decide_checkin(self, *, in_time: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALFDAY, note="Clocked in after 10:00")

    def decide_checkout(self, *, in_time: time, hours: float) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALFDAY)
