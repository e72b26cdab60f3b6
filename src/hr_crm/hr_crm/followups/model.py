from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import FollowUpStatus


@dataclass(frozen=True)
class FollowUp:
    followup_id: int
    company_id: Optional[int]
    lead_id: int
    agent_id: int
    follow_date: datetime
    status: FollowUpStatus = FollowUpStatus.PENDING
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    lead_name: Optional[str] = None
    lead_phone: Optional[str] = None
