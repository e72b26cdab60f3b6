from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..assets.model import Pagination
from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveHistoryEntry:
    action: str
    by: int
    role: Optional[str] = None
    remarks: Optional[str] = None
    at: Optional[datetime] = None


@dataclass(frozen=True)
class Leave:
    leave_id: int
    company_id: Optional[int]
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    approved_by: Optional[int] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    department_id: Optional[int] = None
    history: Tuple[LeaveHistoryEntry, ...] = ()


@dataclass(frozen=True)
class LeavePage:
    leaves: Tuple[Leave, ...]
    pagination: Pagination


@dataclass(frozen=True)
class LeaveStats:
    total: int
    pending: int
    approved: int
    rejected: int
    cancelled: int
    total_days: int


@dataclass(frozen=True)
class LeaveBalanceLine:
    leave_type: LeaveType
    allocated: int
    used: int
    remaining: int


@dataclass(frozen=True)
class LeaveBalance:
    year: int
    balances: Tuple[LeaveBalanceLine, ...]
    total_allocated: int
    total_used: int
    total_remaining: int
    utilization_rate: float
