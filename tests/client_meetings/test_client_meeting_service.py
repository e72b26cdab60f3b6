from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.client_meetings.model import ClientMeeting
from src.hr_crm.hr_crm.client_meetings.service import ClientMeetingService
from src.hr_crm.hr_crm.core.enums import MeetingPriority, MeetingStatus, MeetingType, Role, YesNo
from src.hr_crm.hr_crm.core.exceptions import NotFoundError, ValidationError

NOW = datetime(2026, 4, 2, 9, 30)


class FakeMeetingsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, ClientMeeting] = {}

    def get_by_id(self, meeting_id):
        return self.rows.get(int(meeting_id))

    def _scoped(self, company_id):
        return [m for m in self.rows.values() if company_id is None or m.company_id == company_id]

    def list(self, company_id, *, on_date=None, status=None, newest_first=False):
        rows = [
            m
            for m in self._scoped(company_id)
            if (on_date is None or m.meeting_date == on_date) and (status is None or m.status == status)
        ]
        return sorted(rows, key=lambda m: m.meeting_id, reverse=newest_first)

    def search(self, company_id, *, text=None, meeting_type=None, priority=None, on_date=None):
        rows = []
        for m in self._scoped(company_id):
            if text and text.lower() not in f"{m.client_name} {m.company or ''} {m.phone}".lower():
                continue
            if meeting_type and m.meeting_type != meeting_type:
                continue
            if priority and m.priority != priority:
                continue
            if on_date and m.meeting_date != on_date:
                continue
            rows.append(m)
        return rows

    def create(self, *, company_id, created_by, fields):
        mid = self._next_id
        self._next_id += 1
        self.rows[mid] = ClientMeeting(meeting_id=mid, company_id=company_id, created_by=created_by, **fields)
        return mid

    def update(self, meeting_id, changes):
        self.rows[meeting_id] = replace(self.rows[meeting_id], **changes)
        return True

    def delete(self, meeting_id):
        return self.rows.pop(meeting_id, None) is not None

    def count_by(self, company_id, column):
        counts: dict = {}
        for m in self._scoped(company_id):
            key = getattr(m, column).value
            counts[key] = counts.get(key, 0) + 1
        return counts

    def count_on(self, company_id, on_date):
        return len([m for m in self._scoped(company_id) if m.meeting_date == on_date])


def _actor(company_id=1, role=Role.USER):
    return AuthContext(user_id=3, name="S", email="s@x.io", role=role, company_id=company_id, company_code="X")


def _data(**overrides):
    data = {
        "client_name": "Ravi Traders",
        "phone": "9876543210",
        "meeting_date": "2026-04-02T00:00:00.000Z",
        "meeting_time": "14:30",
        "location": "Client office",
    }
    data.update(overrides)
    return data


def _service():
    repo = FakeMeetingsRepo()
    return ClientMeetingService(repo, clock=lambda: NOW), repo


def test_create_applies_defaults():
    svc, _ = _service()
    meeting = svc.create(actor=_actor(), data=_data())

    assert meeting.company_id == 1
    assert meeting.meeting_date == date(2026, 4, 2)
    assert meeting.meeting_type == MeetingType.ONLINE
    assert meeting.priority == MeetingPriority.NORMAL
    assert meeting.follow_up_required == YesNo.NO
    assert meeting.status == MeetingStatus.SCHEDULED
    assert meeting.duration == "30"


def test_create_requires_fields_and_valid_values():
    svc, _ = _service()
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data=_data(location=""))
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data=_data(meeting_time="25:99"))
    with pytest.raises(ValidationError):
        svc.create(actor=_actor(), data=_data(priority="Urgent"))


def test_meetings_are_scoped_to_company():
    svc, _ = _service()
    meeting = svc.create(actor=_actor(), data=_data())

    with pytest.raises(NotFoundError):
        svc.get(actor=_actor(company_id=2), meeting_id=meeting.meeting_id)
    assert svc.list(actor=_actor(company_id=2)) == []


def test_update_status_and_by_status():
    svc, _ = _service()
    first = svc.create(actor=_actor(), data=_data())
    svc.create(actor=_actor(), data=_data(client_name="Second"))

    svc.update_status(actor=_actor(), meeting_id=first.meeting_id, status="Completed")
    with pytest.raises(ValidationError):
        svc.update_status(actor=_actor(), meeting_id=first.meeting_id, status="Done")

    assert [m.meeting_id for m in svc.by_status(actor=_actor(), status="Completed")] == [first.meeting_id]


def test_today_and_stats():
    svc, _ = _service()
    svc.create(actor=_actor(), data=_data(priority="High", meeting_type="Demo"))
    svc.create(actor=_actor(), data=_data(meeting_date="2026-04-05", meeting_type="Demo"))
    svc.create(actor=_actor(), data=_data(meeting_date="2026-04-06", meeting_type="Sales"))

    assert len(svc.today(actor=_actor())) == 1
    stats = svc.stats(actor=_actor())
    assert stats.total == 3
    assert stats.today == 1
    assert stats.high_priority == 1
    assert stats.scheduled == 3
    assert stats.type_stats[0].label == "Demo"
    assert stats.type_stats[0].count == 2


def test_search_treats_all_as_no_filter():
    svc, _ = _service()
    svc.create(actor=_actor(), data=_data(meeting_type="Demo"))
    svc.create(actor=_actor(), data=_data(client_name="Other Corp", meeting_type="Sales"))

    assert len(svc.search(actor=_actor(), meeting_type="all")) == 2
    assert [m.client_name for m in svc.search(actor=_actor(), q="ravi")] == ["Ravi Traders"]
    assert len(svc.search(actor=_actor(), meeting_type="Sales", on_date="2026-04-02")) == 1


def test_delete_removes_meeting():
    svc, repo = _service()
    meeting = svc.create(actor=_actor(), data=_data())
    svc.delete(actor=_actor(), meeting_id=meeting.meeting_id)
    assert repo.rows == {}
