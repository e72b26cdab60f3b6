from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from ..core.constants import ABSENT_CUTOFF, HALF_DAY_FROM, LATE_FROM
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import AfterCutoffStrategy, HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: pick the strategy for a day from its clock-in time."""

    late_from: time = time(*LATE_FROM)
    half_day_from: time = time(*HALF_DAY_FROM)
    cutoff: time = time(*ABSENT_CUTOFF)

    def for_login(self, in_time: time) -> AttendanceStrategy:
        in_time = in_time.replace(microsecond=0)
        if in_time >= self.cutoff:
            return AfterCutoffStrategy()
        if in_time > self.half_day_from:
            return HalfDayStrategy()
        if in_time >= self.late_from:
            return LateStrategy()
        return OnTimeStrategy()
