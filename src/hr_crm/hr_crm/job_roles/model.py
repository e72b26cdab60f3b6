from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class JobRole:
    job_role_id: int
    company_id: int
    department_id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    department_name: Optional[str] = None
