from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import now_local, parse_hhmm, parse_iso_date
from ..common.validators import optional_str, parse_choice, require_email, require_phone
from ..core.enums import MeetingPriority, MeetingStatus, MeetingType, YesNo
from ..core.exceptions import NotFoundError, ValidationError
from .model import ClientMeeting, LabelCount, MeetingStats
from .repository import ClientMeetingRepository

logger = logging.getLogger(__name__)

_REQUIRED = ("client_name", "phone", "meeting_date", "meeting_time", "location")


def _meeting_date(value):
    if hasattr(value, "year"):
        return value.date() if isinstance(value, datetime) else value
    raw = str(value or "").strip()[:10]
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError("Meeting date must be YYYY-MM-DD")


def _optional_filter(enum_cls, value, field_name: str):
    """``None``/empty/``all`` mean no filter."""
    if value in (None, "") or str(value).lower() == "all":
        return None
    return parse_choice(enum_cls, value, field_name)


class ClientMeetingService:
    def __init__(self, meetings: ClientMeetingRepository, *, clock: Callable[[], datetime] = now_local):
        self._meetings = meetings
        self._clock = clock

    @staticmethod
    def _scope(actor: AuthContext) -> Optional[int]:
        return None if actor.is_super_admin else actor.company_id

    def _clean(self, data: dict, *, partial: bool) -> dict:
        clean: dict = {}
        if "client_name" in data or not partial:
            name = optional_str(data.get("client_name"))
            if not name:
                raise ValidationError("Client name is required")
            clean["client_name"] = name
        if "phone" in data or not partial:
            clean["phone"] = require_phone(data.get("phone"))
        if "email" in data:
            email = optional_str(data.get("email"))
            clean["email"] = require_email(email) if email else None
        if "company" in data:
            clean["company"] = optional_str(data.get("company"))
        if "location" in data or not partial:
            location = optional_str(data.get("location"))
            if not location:
                raise ValidationError("Location is required")
            clean["location"] = location
        if "meeting_date" in data or not partial:
            clean["meeting_date"] = _meeting_date(data.get("meeting_date"))
        if "meeting_time" in data or not partial:
            clean["meeting_time"] = parse_hhmm(data.get("meeting_time"), "Meeting time")
        if "meeting_type" in data or not partial:
            clean["meeting_type"] = parse_choice(MeetingType, data.get("meeting_type"), "meetingType", default=MeetingType.ONLINE)
        if "priority" in data or not partial:
            clean["priority"] = parse_choice(MeetingPriority, data.get("priority"), "priority", default=MeetingPriority.NORMAL)
        if "duration" in data or not partial:
            clean["duration"] = str(data.get("duration") or "30").strip()
        if "description" in data:
            clean["description"] = optional_str(data.get("description"))
        if "follow_up_required" in data or not partial:
            clean["follow_up_required"] = parse_choice(YesNo, data.get("follow_up_required"), "followUpRequired", default=YesNo.NO)
        if "status" in data:
            clean["status"] = parse_choice(MeetingStatus, data.get("status"), "status")
        return clean

    def list(self, *, actor: AuthContext) -> Sequence[ClientMeeting]:
        return self._meetings.list(self._scope(actor))

    def get(self, *, actor: AuthContext, meeting_id: int) -> ClientMeeting:
        meeting = self._meetings.get_by_id(int(meeting_id))
        if not meeting or not actor.can_access_company(meeting.company_id):
            raise NotFoundError("Meeting not found")
        return meeting

    def create(self, *, actor: AuthContext, data: dict) -> ClientMeeting:
        if any(not data.get(key) for key in _REQUIRED):
            raise ValidationError("Please fill all required fields")
        fields = self._clean(data, partial=False)
        meeting_id = self._meetings.create(company_id=actor.company_id, created_by=actor.user_id, fields=fields)
        logger.info("Client meeting %s scheduled by user %s", meeting_id, actor.user_id)
        return self._meetings.get_by_id(meeting_id)

    def update(self, *, actor: AuthContext, meeting_id: int, data: dict) -> ClientMeeting:
        meeting = self.get(actor=actor, meeting_id=meeting_id)
        changes = self._clean(data, partial=True)
        if changes:
            self._meetings.update(meeting.meeting_id, changes)
        return self._meetings.get_by_id(meeting.meeting_id)

    def delete(self, *, actor: AuthContext, meeting_id: int) -> None:
        meeting = self.get(actor=actor, meeting_id=meeting_id)
        self._meetings.delete(meeting.meeting_id)

    def today(self, *, actor: AuthContext) -> Sequence[ClientMeeting]:
        return self._meetings.list(self._scope(actor), on_date=self._clock().date())

    def by_status(self, *, actor: AuthContext, status) -> Sequence[ClientMeeting]:
        wanted = parse_choice(MeetingStatus, status, "status")
        return self._meetings.list(self._scope(actor), status=wanted, newest_first=True)

    def update_status(self, *, actor: AuthContext, meeting_id: int, status) -> ClientMeeting:
        new_status = parse_choice(MeetingStatus, status, "status")
        meeting = self.get(actor=actor, meeting_id=meeting_id)
        self._meetings.update(meeting.meeting_id, {"status": new_status})
        return self._meetings.get_by_id(meeting.meeting_id)

    def stats(self, *, actor: AuthContext) -> MeetingStats:
        scope = self._scope(actor)
        by_type = self._meetings.count_by(scope, "meeting_type")
        by_priority = self._meetings.count_by(scope, "priority")
        by_status = self._meetings.count_by(scope, "status")
        return MeetingStats(
            total=sum(by_status.values()),
            today=self._meetings.count_on(scope, self._clock().date()),
            high_priority=by_priority.get(MeetingPriority.HIGH.value, 0),
            scheduled=by_status.get(MeetingStatus.SCHEDULED.value, 0),
            type_stats=tuple(
                LabelCount(label=k, count=v) for k, v in sorted(by_type.items(), key=lambda kv: kv[1], reverse=True)
            ),
            priority_stats=tuple(LabelCount(label=k, count=v) for k, v in by_priority.items()),
        )

    def search(
        self,
        *,
        actor: AuthContext,
        q: Optional[str] = None,
        meeting_type=None,
        priority=None,
        on_date=None,
    ) -> Sequence[ClientMeeting]:
        return self._meetings.search(
            self._scope(actor),
            text=optional_str(q),
            meeting_type=_optional_filter(MeetingType, meeting_type, "meetingType"),
            priority=_optional_filter(MeetingPriority, priority, "priority"),
            on_date=_meeting_date(on_date) if on_date else None,
        )
