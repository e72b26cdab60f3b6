from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Department


class DepartmentRepository(Protocol):
    def get_by_id(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def find_active_by_name(self, company_id: int, name: str, *, exclude_id: Optional[int] = None) -> Optional[Department]:
        """Case-insensitive lookup among the company's active departments."""
        raise NotImplementedError

    def list_active(self, company_id: Optional[int]) -> Sequence[Department]:
        """Active departments of ``company_id``; every company when it is None."""
        raise NotImplementedError

    def create(self, *, company_id: int, name: str, description: Optional[str], created_by: Optional[int]) -> int:
        raise NotImplementedError

    def update(self, department_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def set_active(self, department_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
