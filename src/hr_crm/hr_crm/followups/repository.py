from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import FollowUpStatus
from .model import FollowUp


class FollowUpRepository(Protocol):
    def get_by_id(self, followup_id: int) -> Optional[FollowUp]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: Optional[int],
        lead_id: int,
        agent_id: int,
        follow_date: datetime,
        note: Optional[str],
    ) -> int:
        raise NotImplementedError

    def list(
        self,
        company_id: Optional[int],
        *,
        agent_id: Optional[int] = None,
        status: Optional[FollowUpStatus] = None,
    ) -> Sequence[FollowUp]:
        raise NotImplementedError

    def list_for_agent_between(
        self,
        agent_id: int,
        *,
        start: datetime,
        end: datetime,
        status: FollowUpStatus = FollowUpStatus.PENDING,
    ) -> Sequence[FollowUp]:
        raise NotImplementedError

    def set_status(self, followup_id: int, status: FollowUpStatus) -> bool:
        raise NotImplementedError

    def count_pending(
        self,
        company_id: Optional[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        raise NotImplementedError
