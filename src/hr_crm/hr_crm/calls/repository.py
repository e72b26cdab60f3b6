from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CallStatus
from .model import AgentCallCount, CallLog


class CallLogRepository(Protocol):
    def get_by_id(self, call_id: int) -> Optional[CallLog]:
        raise NotImplementedError

    def start(self, *, company_id: Optional[int], lead_id: int, agent_id: int, start_time: datetime) -> int:
        raise NotImplementedError

    def finish(
        self,
        call_id: int,
        *,
        end_time: datetime,
        duration: int,
        status: CallStatus,
        notes: Optional[str],
    ) -> bool:
        """Close a call that has not been ended yet."""
        raise NotImplementedError

    def list_for_agent(self, agent_id: int) -> Sequence[CallLog]:
        raise NotImplementedError

    def count(self, company_id: Optional[int], *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        raise NotImplementedError

    def count_by_agent(
        self,
        company_id: Optional[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AgentCallCount]:
        """Calls per agent, busiest first."""
        raise NotImplementedError
