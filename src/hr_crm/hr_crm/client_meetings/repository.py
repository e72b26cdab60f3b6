from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import MeetingPriority, MeetingStatus, MeetingType
from .model import ClientMeeting


class ClientMeetingRepository(Protocol):
    def get_by_id(self, meeting_id: int) -> Optional[ClientMeeting]:
        raise NotImplementedError

    def list(
        self,
        company_id: Optional[int],
        *,
        on_date: Optional[date] = None,
        status: Optional[MeetingStatus] = None,
        newest_first: bool = False,
    ) -> Sequence[ClientMeeting]:
        raise NotImplementedError

    def search(
        self,
        company_id: Optional[int],
        *,
        text: Optional[str] = None,
        meeting_type: Optional[MeetingType] = None,
        priority: Optional[MeetingPriority] = None,
        on_date: Optional[date] = None,
    ) -> Sequence[ClientMeeting]:
        raise NotImplementedError

    def create(self, *, company_id: Optional[int], created_by: Optional[int], fields: dict) -> int:
        raise NotImplementedError

    def update(self, meeting_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def delete(self, meeting_id: int) -> bool:
        raise NotImplementedError

    def count_by(self, company_id: Optional[int], column: str) -> Dict[str, int]:
        """Meeting counts grouped by ``meeting_type``, ``priority`` or ``status``."""
        raise NotImplementedError

    def count_on(self, company_id: Optional[int], on_date: date) -> int:
        raise NotImplementedError
