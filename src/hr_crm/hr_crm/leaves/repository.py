from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Optional, Protocol, Sequence, Tuple

from ..core.enums import LeaveStatus, LeaveType
from .model import Leave, LeaveHistoryEntry


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days: int,
        reason: str,
        entry: LeaveHistoryEntry,
    ) -> int:
        raise NotImplementedError

    def find_overlapping(
        self,
        user_id: int,
        start: date,
        end: date,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[Leave]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[Leave]:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: Optional[int],
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        on_date: Optional[date] = None,
        department_id: Optional[int] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[Leave], int]:
        """``on_date`` keeps leaves whose range covers that day."""
        raise NotImplementedError

    def set_status(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        approved_by: Optional[int],
        remarks: Optional[str],
        entry: LeaveHistoryEntry,
    ) -> bool:
        raise NotImplementedError

    def delete(self, leave_id: int) -> bool:
        raise NotImplementedError

    def status_totals(
        self,
        company_id: Optional[int],
        *,
        user_id: Optional[int] = None,
        department_id: Optional[int] = None,
    ) -> Dict[LeaveStatus, Tuple[int, int]]:
        """``{status: (count, days)}``."""
        raise NotImplementedError

    def approved_days_by_type(self, user_id: int, year: int) -> Dict[LeaveType, int]:
        raise NotImplementedError
