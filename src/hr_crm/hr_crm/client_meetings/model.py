from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import MeetingPriority, MeetingStatus, MeetingType, YesNo


@dataclass(frozen=True)
class ClientMeeting:
    meeting_id: int
    company_id: Optional[int]
    client_name: str
    phone: str
    location: str
    meeting_date: date
    meeting_time: str
    email: Optional[str] = None
    company: Optional[str] = None
    meeting_type: MeetingType = MeetingType.ONLINE
    priority: MeetingPriority = MeetingPriority.NORMAL
    duration: str = "30"
    description: Optional[str] = None
    follow_up_required: YesNo = YesNo.NO
    status: MeetingStatus = MeetingStatus.SCHEDULED
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class LabelCount:
    label: str
    count: int


@dataclass(frozen=True)
class MeetingStats:
    total: int
    today: int
    high_priority: int
    scheduled: int
    type_stats: Tuple[LabelCount, ...]
    priority_stats: Tuple[LabelCount, ...]
