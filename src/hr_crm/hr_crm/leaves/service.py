from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..assets.model import Pagination
from ..auth.context import AuthContext
from ..common.datetime_utils import now_local, optional_day, parse_day
from ..common.validators import optional_int, optional_str, parse_choice, require_max_length, require_non_empty
from ..core.constants import DEFAULT_LEAVE_PAGE_SIZE, LEAVE_POLICIES, LEAVE_REASON_MAX, MAX_PAGE_SIZE
from ..core.enums import ACTIVE_LEAVE_STATUSES, LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Leave, LeaveBalance, LeaveBalanceLine, LeaveHistoryEntry, LeavePage, LeaveStats
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_HISTORY_ACTIONS = {
    LeaveStatus.APPROVED: "approved",
    LeaveStatus.REJECTED: "rejected",
    LeaveStatus.CANCELLED: "cancelled",
}


def _filter(enum_cls, value, field_name: str):
    """``all`` (any case) and blanks mean no filter."""
    if value is None or value == "" or str(value).lower() == "all":
        return None
    return parse_choice(enum_cls, value, field_name)


class LeaveService:
    """Leave applications, approvals and yearly balances, scoped to the caller's company."""

    def __init__(self, leaves: LeaveRepository, *, clock: Callable[[], datetime] = now_local):
        self._leaves = leaves
        self._clock = clock

    def _entry(self, actor: AuthContext, action: str, remarks: Optional[str] = None) -> LeaveHistoryEntry:
        return LeaveHistoryEntry(action=action, by=actor.user_id, role=actor.role.value, remarks=remarks)

    def _load(self, actor: AuthContext, leave_id) -> Leave:
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave or not actor.can_access_company(leave.company_id):
            raise NotFoundError("Leave not found")
        return leave

    def apply(self, *, actor: AuthContext, data: dict) -> Leave:
        if actor.company_id is None:
            raise ValidationError("User is not associated with a company")
        leave_type = parse_choice(LeaveType, data.get("type", data.get("leave_type")), "type")
        start = parse_day(data.get("start_date"), "Start date")
        end = parse_day(data.get("end_date"), "End date")
        reason = require_max_length(require_non_empty(data.get("reason"), "Reason"), "Reason", LEAVE_REASON_MAX)

        if start > end:
            raise ValidationError("Start date cannot be after end date.")
        if start < self._clock().date():
            raise ValidationError("Start date cannot be in the past.")
        if self._leaves.find_overlapping(actor.user_id, start, end, ACTIVE_LEAVE_STATUSES):
            raise ValidationError(
                "You already have a leave application for this period.",
                error_code="LEAVE_OVERLAP",
            )

        leave_id = self._leaves.create(
            company_id=actor.company_id,
            user_id=actor.user_id,
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            days=(end - start).days + 1,
            reason=reason,
            entry=self._entry(actor, "applied"),
        )
        logger.info("Leave %s applied by user %s (%s to %s)", leave_id, actor.user_id, start, end)
        return self._leaves.get_by_id(leave_id)

    def my_leaves(self, *, actor: AuthContext) -> Sequence[Leave]:
        return self._leaves.list_for_user(actor.user_id)

    def list_company(self, *, actor: AuthContext, filters: dict) -> LeavePage:
        if not actor.is_privileged:
            raise AuthorizationError("Access denied")
        page = max(1, optional_int(filters.get("page"), "page") or 1)
        limit = min(MAX_PAGE_SIZE, max(1, optional_int(filters.get("limit"), "limit") or DEFAULT_LEAVE_PAGE_SIZE))
        department = filters.get("department")
        leaves, total = self._leaves.list_for_company(
            None if actor.is_super_admin else actor.company_id,
            status=_filter(LeaveStatus, filters.get("status"), "status"),
            leave_type=_filter(LeaveType, filters.get("type"), "type"),
            on_date=optional_day(filters.get("date")),
            department_id=None if department in (None, "", "all") else optional_int(department, "department"),
            search=optional_str(filters.get("search")),
            offset=(page - 1) * limit,
            limit=limit,
        )
        return LeavePage(
            leaves=tuple(leaves),
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )

    def update_status(self, *, actor: AuthContext, leave_id: int, status, remarks: Optional[str] = None) -> Leave:
        actor.require_role(Role.ADMIN, Role.HR, message="Only admins and HR can update leave status")
        new_status = parse_choice(LeaveStatus, status, "status")
        leave = self._load(actor, leave_id)
        if leave.user_id == actor.user_id and not actor.is_super_admin:
            raise AuthorizationError("You cannot decide your own leave application")

        remarks = require_max_length(optional_str(remarks), "Remarks", LEAVE_REASON_MAX)
        self._leaves.set_status(
            leave.leave_id,
            status=new_status,
            approved_by=actor.user_id,
            remarks=remarks,
            entry=self._entry(actor, _HISTORY_ACTIONS.get(new_status, "updated"), remarks),
        )
        logger.info("Leave %s set to %s by %s", leave.leave_id, new_status.value, actor.user_id)
        return self._leaves.get_by_id(leave.leave_id)

    def approve(self, *, actor: AuthContext, leave_id: int, remarks: Optional[str] = None) -> Leave:
        return self.update_status(actor=actor, leave_id=leave_id, status=LeaveStatus.APPROVED, remarks=remarks)

    def reject(self, *, actor: AuthContext, leave_id: int, remarks: Optional[str] = None) -> Leave:
        return self.update_status(actor=actor, leave_id=leave_id, status=LeaveStatus.REJECTED, remarks=remarks)

    def cancel(self, *, actor: AuthContext, leave_id: int) -> Leave:
        leave = self._load(actor, leave_id)
        if leave.user_id != actor.user_id:
            raise AuthorizationError("You can only cancel your own leave applications")
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending leave applications can be cancelled")
        self._leaves.set_status(
            leave.leave_id,
            status=LeaveStatus.CANCELLED,
            approved_by=None,
            remarks=None,
            entry=self._entry(actor, "cancelled"),
        )
        return self._leaves.get_by_id(leave.leave_id)

    def delete(self, *, actor: AuthContext, leave_id: int) -> None:
        actor.require_role(Role.ADMIN, message="Only admins can delete leave applications")
        leave = self._load(actor, leave_id)
        self._leaves.delete(leave.leave_id)
        logger.info("Leave %s deleted by %s", leave.leave_id, actor.user_id)

    def stats(self, *, actor: AuthContext) -> LeaveStats:
        """Admins and HR see the company, managers their department, everyone else their own leaves."""
        if actor.is_super_admin:
            totals = self._leaves.status_totals(None)
        elif actor.role in (Role.ADMIN, Role.HR):
            totals = self._leaves.status_totals(actor.company_id)
        elif actor.role == Role.MANAGER and actor.department_id is not None:
            totals = self._leaves.status_totals(actor.company_id, department_id=actor.department_id)
        else:
            totals = self._leaves.status_totals(actor.company_id, user_id=actor.user_id)

        def count(status: LeaveStatus) -> int:
            return totals.get(status, (0, 0))[0]

        return LeaveStats(
            total=sum(c for c, _ in totals.values()),
            pending=count(LeaveStatus.PENDING),
            approved=count(LeaveStatus.APPROVED),
            rejected=count(LeaveStatus.REJECTED),
            cancelled=count(LeaveStatus.CANCELLED),
            total_days=sum(d for _, d in totals.values()),
        )

    def balance(self, *, actor: AuthContext, year=None) -> LeaveBalance:
        year = optional_int(year, "Year") or self._clock().year
        used_by_type = self._leaves.approved_days_by_type(actor.user_id, year)

        lines = []
        for leave_type in LeaveType:
            allocated = LEAVE_POLICIES[leave_type.value]
            used = used_by_type.get(leave_type, 0)
            lines.append(
                LeaveBalanceLine(leave_type=leave_type, allocated=allocated, used=used, remaining=max(0, allocated - used))
            )

        total_allocated = sum(line.allocated for line in lines)
        total_used = sum(line.used for line in lines)
        return LeaveBalance(
            year=year,
            balances=tuple(lines),
            total_allocated=total_allocated,
            total_used=total_used,
            total_remaining=sum(line.remaining for line in lines),
            utilization_rate=round(total_used * 100 / total_allocated, 1) if total_allocated else 0.0,
        )
