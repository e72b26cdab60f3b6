from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Company:
    """Tenant: every employee, department and business record hangs off one company."""

    company_id: int
    company_name: str
    company_code: str
    company_email: str
    company_address: str
    company_phone: str
    owner_name: str
    login_url: str
    db_identifier: str
    subscription_expiry: datetime
    company_domain: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool = True
    deactivated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def subscription_expired(self, now: datetime) -> bool:
        return self.subscription_expiry is not None and now > self.subscription_expiry


@dataclass(frozen=True)
class CompanyStats:
    total_users: int
    active_users: int
    departments: int
    job_roles: int
    assets: int
