from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, Optional, Protocol, Sequence, Set

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        """Records with ``start <= work_date <= end``, oldest first."""
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: Optional[int],
        *,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: Optional[int],
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        in_time: Optional[datetime] = None,
        out_time: Optional[datetime] = None,
        late_by: Optional[str] = None,
        early_leave: Optional[str] = None,
        over_time: Optional[str] = None,
        total_time: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def create_absent(self, *, company_id: int, user_id: int, work_date: date, notes: str) -> bool:
        """Insert an ABSENT day unless the user already has a record for it."""
        raise NotImplementedError

    def update(self, attendance_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def user_ids_with_record(self, user_ids: Iterable[int], work_date: date) -> Set[int]:
        raise NotImplementedError

    def status_counts(
        self,
        company_id: Optional[int],
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[AttendanceStatus, int]:
        raise NotImplementedError
