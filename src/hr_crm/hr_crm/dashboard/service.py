from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from ..auth.context import AuthContext
from ..calls.repository import CallLogRepository
from ..common.datetime_utils import now_local, range_window
from ..common.validators import parse_choice
from ..core.enums import DashboardRange, LeadStatus, Role, TaskStatus
from ..followups.repository import FollowUpRepository
from ..leads.repository import LeadRepository
from ..tasks.repository import TaskRepository
from .model import DashboardSummary, TaskSummary


def _scope(actor: AuthContext) -> Optional[int]:
    # Super-admins without a company see every tenant.
    if actor.is_super_admin and actor.company_id is None:
        return None
    return actor.company_id


class DashboardService:
    def __init__(
        self,
        leads: LeadRepository,
        calls: CallLogRepository,
        followups: FollowUpRepository,
        tasks: TaskRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leads = leads
        self._calls = calls
        self._followups = followups
        self._tasks = tasks
        self._clock = clock

    def summary(self, *, actor: AuthContext, range_=None) -> DashboardSummary:
        """Call, lead and follow-up figures for the caller's company over a dashboard range."""
        chosen = parse_choice(DashboardRange, range_, "range", default=DashboardRange.TODAY)
        start, end = range_window(chosen, self._clock())
        company_id = _scope(actor)

        raw = self._leads.count_by_status(company_id, start=start, end=end)
        leads_by_status = {status.value: int(raw.get(status.value, 0)) for status in LeadStatus}

        return DashboardSummary(
            range=chosen,
            total_calls=self._calls.count(company_id, start=start, end=end),
            total_leads=sum(leads_by_status.values()),
            pending_follow_ups=self._followups.count_pending(company_id, start=start, end=end),
            leads_by_status=leads_by_status,
            agent_call_counts=tuple(self._calls.count_by_agent(company_id, start=start, end=end)),
        )

    def task_summary(self, *, actor: AuthContext) -> TaskSummary:
        actor.require_role(Role.ADMIN, Role.HR, Role.MANAGER)
        raw = self._tasks.status_counts_for_company(_scope(actor))
        by_status = {status.value: int(raw.get(status.value, 0)) for status in TaskStatus}
        return TaskSummary(
            total=sum(by_status.values()),
            overdue=by_status[TaskStatus.OVERDUE.value],
            by_status=by_status,
        )
