from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import CallStatus


@dataclass(frozen=True)
class CallLog:
    call_id: int
    company_id: Optional[int]
    lead_id: int
    agent_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int = 0
    status: Optional[CallStatus] = None
    notes: Optional[str] = None
    lead_name: Optional[str] = None
    lead_phone: Optional[str] = None

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None


@dataclass(frozen=True)
class AgentCallCount:
    agent_id: int
    agent_name: str
    calls: int
