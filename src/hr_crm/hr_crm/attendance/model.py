from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One user's day. Placeholder days in a monthly list have no ``attendance_id``."""

    attendance_id: Optional[int]
    company_id: Optional[int]
    user_id: int
    work_date: date
    status: AttendanceStatus
    in_time: Optional[datetime] = None
    out_time: Optional[datetime] = None
    late_by: Optional[str] = None
    early_leave: Optional[str] = None
    over_time: Optional[str] = None
    total_time: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    @property
    def is_clocked_in(self) -> bool:
        return self.in_time is not None and self.out_time is None


@dataclass(frozen=True)
class TodayStatus:
    is_clocked_in: bool
    status: Optional[AttendanceStatus]
    record: Optional[AttendanceRecord] = None


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    late: int
    half_day: int
    absent: int


@dataclass(frozen=True)
class AbsenceSweepResult:
    days: Tuple[date, ...]
    checked: int
    marked: int
