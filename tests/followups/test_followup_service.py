from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time, timedelta

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.common.datetime_utils import from_ist, to_ist
from src.hr_crm.hr_crm.core.enums import FollowUpStatus, Role
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.followups.model import FollowUp
from src.hr_crm.hr_crm.followups.service import FollowUpService
from src.hr_crm.hr_crm.leads.model import Lead

NOW = datetime(2026, 5, 4, 13, 0)


class FakeFollowUpsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, FollowUp] = {}

    def get_by_id(self, followup_id):
        return self.rows.get(int(followup_id))

    def create(self, *, company_id, lead_id, agent_id, follow_date, note):
        fid = self._next_id
        self._next_id += 1
        self.rows[fid] = FollowUp(
            followup_id=fid, company_id=company_id, lead_id=lead_id, agent_id=agent_id, follow_date=follow_date, note=note
        )
        return fid

    def list(self, company_id, *, agent_id=None, status=None):
        return [
            f
            for f in self.rows.values()
            if (company_id is None or f.company_id == company_id)
            and (agent_id is None or f.agent_id == agent_id)
            and (status is None or f.status == status)
        ]

    def list_for_agent_between(self, agent_id, *, start, end, status=FollowUpStatus.PENDING):
        return [
            f
            for f in self.rows.values()
            if f.agent_id == agent_id and f.status == status and start <= f.follow_date < end
        ]

    def set_status(self, followup_id, status):
        self.rows[followup_id] = replace(self.rows[followup_id], status=status)
        return True


class FakeLeadsRepo:
    def __init__(self):
        self.rows = {
            1: Lead(lead_id=1, company_id=1, name="Priya", phone="1"),
            2: Lead(lead_id=2, company_id=2, name="Other", phone="2"),
        }

    def get_by_id(self, lead_id):
        return self.rows.get(int(lead_id))


def _actor(user_id=5, role=Role.USER, company_id=1):
    return AuthContext(user_id=user_id, name="A", email="a@x.io", role=role, company_id=company_id, company_code="X")


def _service():
    repo = FakeFollowUpsRepo()
    return FollowUpService(repo, FakeLeadsRepo(), clock=lambda: NOW), repo


def test_default_follow_up_is_tomorrow_ten_am_india_time():
    svc, _ = _service()
    followup = svc.create(actor=_actor(), lead_id=1)

    in_ist = to_ist(followup.follow_date)
    assert in_ist.date() == to_ist(NOW).date() + timedelta(days=1)
    assert (in_ist.hour, in_ist.minute) == (10, 0)
    assert followup.status == FollowUpStatus.PENDING
    assert followup.agent_id == 5


def test_explicit_date_is_used():
    svc, _ = _service()
    followup = svc.create(actor=_actor(), lead_id="1", note="Send brochure", date="2026-05-10T09:15:00")
    assert followup.follow_date == datetime(2026, 5, 10, 9, 15)
    assert followup.note == "Send brochure"


def test_lead_must_exist_in_company():
    svc, _ = _service()
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), lead_id=None)
    with pytest.raises(NotFoundError):
        svc.create(actor=_actor(), lead_id=2)
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), lead_id=1, date="next week")


def test_today_lists_pending_follow_ups_of_current_india_day():
    svc, repo = _service()
    today_ist = to_ist(NOW).date()
    inside = from_ist(datetime.combine(today_ist, time(18, 0)))
    outside = from_ist(datetime.combine(today_ist + timedelta(days=1), time(9, 0)))
    svc.create(actor=_actor(), lead_id=1, date=inside)
    svc.create(actor=_actor(), lead_id=1, date=outside)
    done = svc.create(actor=_actor(), lead_id=1, date=inside)
    repo.set_status(done.followup_id, FollowUpStatus.DONE)
    svc.create(actor=_actor(user_id=6), lead_id=1, date=inside)

    assert [f.follow_date for f in svc.today(actor=_actor())] == [inside]


def test_complete_own_follow_up_or_as_manager():
    svc, _ = _service()
    followup = svc.create(actor=_actor(), lead_id=1)

    with pytest.raises(AuthorizationError):
        svc.complete(actor=_actor(user_id=6), followup_id=followup.followup_id)
    assert svc.complete(actor=_actor(), followup_id=followup.followup_id).status == FollowUpStatus.DONE

    other = svc.create(actor=_actor(), lead_id=1)
    assert svc.complete(actor=_actor(user_id=1, role=Role.MANAGER), followup_id=other.followup_id).status == FollowUpStatus.DONE


def test_list_filters_agents_to_their_own():
    svc, _ = _service()
    svc.create(actor=_actor(), lead_id=1)
    svc.create(actor=_actor(user_id=6), lead_id=1)

    assert len(svc.list(actor=_actor())) == 1
    assert len(svc.list(actor=_actor(user_id=1, role=Role.HR))) == 2
    assert svc.list(actor=_actor(), status="done") == []
