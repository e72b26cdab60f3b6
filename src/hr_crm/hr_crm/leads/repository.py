from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import LeadStatus
from .model import Lead


class LeadRepository(Protocol):
    def get_by_id(self, lead_id: int) -> Optional[Lead]:
        raise NotImplementedError

    def list(
        self,
        company_id: Optional[int],
        *,
        status: Optional[LeadStatus] = None,
        visible_to: Optional[int] = None,
    ) -> Sequence[Lead]:
        """``visible_to`` keeps leads assigned to or created by that user."""
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: Optional[int],
        name: str,
        phone: str,
        email: Optional[str],
        source: Optional[str],
        status: LeadStatus,
        assigned_to: Optional[int],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update(self, lead_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def add_note(self, lead_id: int, *, message: str, created_by: Optional[int]) -> int:
        raise NotImplementedError

    def count_by_status(
        self,
        company_id: Optional[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """Leads created in [start, end) per status; open bounds when None."""
        raise NotImplementedError
