from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import time
from typing import Optional

from ...core.constants import FULL_DAY_HOURS, HALF_DAY_HOURS
from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: how a day is classified, chosen by the clock-in time."""

    @abstractmethod
    def decide_checkin(self, *, in_time: time) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, in_time: time, hours: float) -> StatusDecision:
        raise NotImplementedError


def by_hours(hours: float, full: AttendanceStatus) -> AttendanceStatus:
    """``full`` for a full day, half day from five hours, otherwise absent."""
    if hours >= FULL_DAY_HOURS:
        return full
    if hours >= HALF_DAY_HOURS:
        return AttendanceStatus.HALFDAY
    return AttendanceStatus.ABSENT
