from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import LeadStatus


@dataclass(frozen=True)
class LeadNote:
    note_id: int
    message: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Lead:
    lead_id: int
    company_id: Optional[int]
    name: str
    phone: str
    email: Optional[str] = None
    source: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW
    assigned_to: Optional[int] = None
    assigned_to_name: Optional[str] = None
    assigned_to_email: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    notes: Tuple[LeadNote, ...] = ()
