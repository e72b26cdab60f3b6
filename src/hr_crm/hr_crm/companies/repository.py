from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Company, CompanyStats


class CompanyRepository(Protocol):
    """Repository interface for Company.

    Note: services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError

    def get_by_code(self, company_code: str) -> Optional[Company]:
        raise NotImplementedError

    def find_by_identifier(self, identifier: str) -> Optional[Company]:
        """Company by code (case-insensitive), db identifier, or login URL segment."""
        raise NotImplementedError

    def find_conflict(
        self,
        *,
        company_name: Optional[str] = None,
        company_email: Optional[str] = None,
        company_phone: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> Optional[str]:
        """Name of the first field already used by another company, else None."""
        raise NotImplementedError

    def code_exists(self, company_code: str) -> bool:
        raise NotImplementedError

    def create(
        self,
        *,
        company_name: str,
        company_code: str,
        company_email: str,
        company_address: str,
        company_phone: str,
        owner_name: str,
        logo: Optional[str],
        company_domain: str,
        login_url: str,
        db_identifier: str,
        subscription_expiry: datetime,
    ) -> int:
        raise NotImplementedError

    def list_all(self) -> Sequence[Company]:
        raise NotImplementedError

    def update(self, company_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def set_active(self, company_id: int, *, is_active: bool, deactivated_at: Optional[datetime]) -> bool:
        raise NotImplementedError

    def delete(self, company_id: int) -> bool:
        raise NotImplementedError

    def stats(self, company_id: int) -> CompanyStats:
        raise NotImplementedError
