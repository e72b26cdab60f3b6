from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.calls.model import AgentCallCount
from src.hr_crm.hr_crm.common.datetime_utils import range_window
from src.hr_crm.hr_crm.core.enums import DashboardRange, Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, ValidationError
from src.hr_crm.hr_crm.dashboard.service import DashboardService

NOW = datetime(2026, 6, 15, 14, 30)


class RecordingRepo:
    """Answers every count query with canned data and remembers the arguments."""

    def __init__(self):
        self.calls = []

    def count_by_status(self, company_id, *, start=None, end=None):
        self.calls.append(("leads", company_id, start, end))
        return {"new": 3, "converted": 1}

    def count(self, company_id, *, start=None, end=None):
        self.calls.append(("calls", company_id, start, end))
        return 7

    def count_by_agent(self, company_id, *, start=None, end=None):
        return [AgentCallCount(agent_id=5, agent_name="Asha", calls=5), AgentCallCount(agent_id=6, agent_name="Ben", calls=2)]

    def count_pending(self, company_id, *, start=None, end=None):
        return 4

    def status_counts_for_company(self, company_id):
        self.calls.append(("tasks", company_id, None, None))
        return {"pending": 2, "overdue": 1}


def _actor(role=Role.MANAGER, company_id=1):
    return AuthContext(user_id=1, name="M", email="m@x.io", role=role, company_id=company_id, company_code="X")


def _service():
    repo = RecordingRepo()
    return DashboardService(repo, repo, repo, repo, clock=lambda: NOW), repo


def test_range_window_bounds():
    midnight = datetime(2026, 6, 15)
    assert range_window(DashboardRange.TODAY, NOW) == (midnight, None)
    assert range_window(DashboardRange.YESTERDAY, NOW) == (midnight - timedelta(days=1), midnight)
    assert range_window(DashboardRange.WEEK, NOW) == (NOW - timedelta(days=7), None)
    assert range_window(DashboardRange.MONTH, NOW) == (NOW - timedelta(days=30), None)
    assert range_window(DashboardRange.ALL, NOW) == (None, None)


def test_summary_zero_fills_lead_statuses_and_defaults_to_today():
    svc, repo = _service()
    summary = svc.summary(actor=_actor())

    assert summary.range == DashboardRange.TODAY
    assert summary.total_calls == 7
    assert summary.total_leads == 4
    assert summary.pending_follow_ups == 4
    assert summary.leads_by_status == {
        "new": 3,
        "follow-up": 0,
        "interested": 0,
        "not interested": 0,
        "converted": 1,
    }
    assert [a.agent_name for a in summary.agent_call_counts] == ["Asha", "Ben"]
    assert repo.calls[0] == ("leads", 1, datetime(2026, 6, 15), None)


def test_summary_rejects_unknown_range():
    svc, _ = _service()
    with pytest.raises(ValidationError):
        svc.summary(actor=_actor(), range_="decade")


def test_super_admin_without_company_sees_all_tenants():
    svc, repo = _service()
    svc.summary(actor=_actor(role=Role.SUPER_ADMIN, company_id=None), range_="all")
    assert repo.calls[0] == ("leads", None, None, None)


def test_task_summary_requires_privileged_role():
    svc, _ = _service()
    with pytest.raises(AuthorizationError):
        svc.task_summary(actor=_actor(role=Role.USER))

    summary = svc.task_summary(actor=_actor(role=Role.HR))
    assert summary.total == 3
    assert summary.overdue == 1
    assert summary.by_status["completed"] == 0
