from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.core.enums import LeaveStatus, LeaveType, Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.leaves.model import Leave
from src.hr_crm.hr_crm.leaves.service import LeaveService

TODAY = datetime(2026, 10, 14, 12, 0)
DEPARTMENTS = {2: 10, 3: 20, 9: 10}


class FakeLeavesRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Leave] = {}

    def get_by_id(self, leave_id):
        return self.rows.get(int(leave_id))

    def create(self, *, entry, **fields):
        lid = self._next_id
        self._next_id += 1
        self.rows[lid] = Leave(leave_id=lid, department_id=DEPARTMENTS.get(fields["user_id"]),
                               history=(entry,), **fields)
        return lid

    def find_overlapping(self, user_id, start, end, statuses):
        return [
            l for l in self.rows.values()
            if l.user_id == user_id and l.start_date <= end and l.end_date >= start and l.status in statuses
        ]

    def list_for_user(self, user_id):
        return [l for l in self.rows.values() if l.user_id == user_id]

    def list_for_company(self, company_id, *, status=None, leave_type=None, on_date=None, department_id=None,
                         search=None, offset=0, limit=20):
        rows = [
            l for l in self.rows.values()
            if (company_id is None or l.company_id == company_id)
            and (status is None or l.status == status)
            and (leave_type is None or l.leave_type == leave_type)
            and (on_date is None or l.start_date <= on_date <= l.end_date)
            and (department_id is None or l.department_id == department_id)
            and (search is None or search.lower() in l.reason.lower())
        ]
        return rows[offset:offset + limit], len(rows)

    def set_status(self, leave_id, *, status, approved_by, remarks, entry):
        leave = self.rows[leave_id]
        self.rows[leave_id] = replace(
            leave,
            status=status,
            approved_by=approved_by,
            remarks=remarks if remarks is not None else leave.remarks,
            history=leave.history + (entry,),
        )
        return True

    def delete(self, leave_id):
        return self.rows.pop(leave_id, None) is not None

    def status_totals(self, company_id, *, user_id=None, department_id=None):
        totals: dict = {}
        for l in self.rows.values():
            if company_id is not None and l.company_id != company_id:
                continue
            if user_id is not None and l.user_id != user_id:
                continue
            if department_id is not None and l.department_id != department_id:
                continue
            count, days = totals.get(l.status, (0, 0))
            totals[l.status] = (count + 1, days + l.days)
        return totals

    def approved_days_by_type(self, user_id, year):
        used: dict = {}
        for l in self.rows.values():
            if l.user_id == user_id and l.status == LeaveStatus.APPROVED and l.start_date.year == year:
                used[l.leave_type] = used.get(l.leave_type, 0) + l.days
        return used


def _actor(user_id=2, role=Role.USER, company_id=1, department_id=None):
    return AuthContext(user_id=user_id, name="A", email="a@x.io", role=role, company_id=company_id,
                       company_code="X", department_id=department_id)


def _service():
    return LeaveService(FakeLeavesRepo(), clock=lambda: TODAY)


def _apply(svc, actor=None, start="2026-10-20", end="2026-10-22", leave_type="Casual", reason="Family visit"):
    return svc.apply(
        actor=actor or _actor(),
        data={"type": leave_type, "start_date": start, "end_date": end, "reason": reason},
    )


def test_apply_counts_days_inclusive_and_records_history():
    leave = _apply(_service())
    assert leave.days == 3
    assert leave.status == LeaveStatus.PENDING
    assert leave.leave_type == LeaveType.CASUAL
    assert leave.company_id == 1
    assert [h.action for h in leave.history] == ["applied"]


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"start": "2026-10-22", "end": "2026-10-20"}, "cannot be after"),
        ({"start": "2026-10-13", "end": "2026-10-15"}, "in the past"),
        ({"leave_type": "Vacation"}, "Invalid type"),
        ({"reason": "  "}, "Reason is required"),
        ({"reason": "x" * 501}, "cannot exceed 500"),
        ({"start": "20-10-2026"}, "valid date"),
    ],
)
def test_apply_validation(kwargs, message):
    with pytest.raises(ValidationError, match=message):
        _apply(_service(), **kwargs)


def test_apply_today_is_allowed():
    assert _apply(_service(), start="2026-10-14", end="2026-10-14").days == 1


def test_apply_rejects_overlap_with_pending_or_approved_only():
    svc = _service()
    first = _apply(svc)
    with pytest.raises(ValidationError, match="already have a leave"):
        _apply(svc, start="2026-10-22", end="2026-10-25")

    svc.reject(actor=_actor(1, Role.HR), leave_id=first.leave_id)
    assert _apply(svc, start="2026-10-22", end="2026-10-25").days == 4


def test_approve_and_reject_need_admin_or_hr_of_the_same_company():
    svc = _service()
    leave = _apply(svc)

    with pytest.raises(AuthorizationError):
        svc.approve(actor=_actor(3, Role.MANAGER), leave_id=leave.leave_id)
    with pytest.raises(NotFoundError):
        svc.approve(actor=_actor(7, Role.ADMIN, company_id=2), leave_id=leave.leave_id)

    approved = svc.approve(actor=_actor(1, Role.ADMIN), leave_id=leave.leave_id, remarks="Enjoy")
    assert approved.status == LeaveStatus.APPROVED
    assert approved.approved_by == 1
    assert approved.remarks == "Enjoy"
    assert [h.action for h in approved.history] == ["applied", "approved"]
    assert approved.history[-1].role == "admin"


def test_update_status_back_to_pending_is_recorded_as_updated():
    svc = _service()
    leave = _apply(svc)
    svc.reject(actor=_actor(1, Role.HR), leave_id=leave.leave_id)
    reopened = svc.update_status(actor=_actor(1, Role.HR), leave_id=leave.leave_id, status="Pending")
    assert reopened.history[-1].action == "updated"
    with pytest.raises(ValidationError):
        svc.update_status(actor=_actor(1, Role.HR), leave_id=leave.leave_id, status="Done")


def test_nobody_decides_their_own_leave():
    svc = _service()
    leave = _apply(svc, actor=_actor(1, Role.HR))
    with pytest.raises(AuthorizationError, match="your own"):
        svc.approve(actor=_actor(1, Role.HR), leave_id=leave.leave_id)


def test_cancel_only_own_pending_leave():
    svc = _service()
    leave = _apply(svc)
    with pytest.raises(AuthorizationError):
        svc.cancel(actor=_actor(3), leave_id=leave.leave_id)

    cancelled = svc.cancel(actor=_actor(), leave_id=leave.leave_id)
    assert cancelled.status == LeaveStatus.CANCELLED
    with pytest.raises(ValidationError, match="Only pending"):
        svc.cancel(actor=_actor(), leave_id=leave.leave_id)


def test_delete_is_admin_only():
    svc = _service()
    leave = _apply(svc)
    with pytest.raises(AuthorizationError):
        svc.delete(actor=_actor(1, Role.HR), leave_id=leave.leave_id)
    svc.delete(actor=_actor(1, Role.ADMIN), leave_id=leave.leave_id)
    assert svc.my_leaves(actor=_actor()) == []


def test_company_list_filters_and_paginates():
    svc = _service()
    _apply(svc, actor=_actor(2), reason="Wedding")
    _apply(svc, actor=_actor(3), leave_type="Sick", start="2026-11-02", end="2026-11-02", reason="Flu")
    _apply(svc, actor=_actor(9, company_id=2), reason="Elsewhere")

    with pytest.raises(AuthorizationError):
        svc.list_company(actor=_actor(), filters={})

    hr = _actor(1, Role.HR)
    page = svc.list_company(actor=hr, filters={"status": "all", "type": "all"})
    assert page.pagination.total == 2

    assert len(svc.list_company(actor=hr, filters={"type": "Sick"}).leaves) == 1
    assert len(svc.list_company(actor=hr, filters={"date": "2026-10-21"}).leaves) == 1
    assert len(svc.list_company(actor=hr, filters={"department": "20"}).leaves) == 1
    assert len(svc.list_company(actor=hr, filters={"search": "wed"}).leaves) == 1

    page = svc.list_company(actor=hr, filters={"limit": "1", "page": "2"})
    assert (page.pagination.page, page.pagination.pages, len(page.leaves)) == (2, 2, 1)


def test_stats_scope_follows_role():
    svc = _service()
    first = _apply(svc, actor=_actor(2))
    _apply(svc, actor=_actor(3), start="2026-11-02", end="2026-11-03")
    svc.approve(actor=_actor(1, Role.ADMIN), leave_id=first.leave_id)

    company = svc.stats(actor=_actor(1, Role.ADMIN))
    assert (company.total, company.pending, company.approved, company.total_days) == (2, 1, 1, 5)

    department = svc.stats(actor=_actor(5, Role.MANAGER, department_id=20))
    assert (department.total, department.pending) == (1, 1)

    own = svc.stats(actor=_actor(2))
    assert (own.total, own.approved, own.total_days) == (1, 1, 3)


def test_balance_subtracts_approved_days_for_the_year():
    svc = _service()
    casual = _apply(svc)
    _apply(svc, leave_type="Sick", start="2026-11-02", end="2026-11-02")
    svc.approve(actor=_actor(1, Role.ADMIN), leave_id=casual.leave_id)

    balance = svc.balance(actor=_actor())
    lines = {line.leave_type: line for line in balance.balances}
    assert balance.year == 2026
    assert (lines[LeaveType.CASUAL].used, lines[LeaveType.CASUAL].remaining) == (3, 9)
    assert lines[LeaveType.SICK].used == 0
    assert balance.total_allocated == 77
    assert balance.total_used == 3
    assert balance.utilization_rate == 3.9

    assert svc.balance(actor=_actor(), year=2025).total_used == 0
