from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import JobRole


class JobRoleRepository(Protocol):
    def get_by_id(self, job_role_id: int) -> Optional[JobRole]:
        raise NotImplementedError

    def find_active_by_name(
        self,
        *,
        company_id: int,
        department_id: int,
        name: str,
        exclude_id: Optional[int] = None,
    ) -> Optional[JobRole]:
        raise NotImplementedError

    def list_active(self, *, company_id: Optional[int], department_id: Optional[int] = None) -> Sequence[JobRole]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        department_id: int,
        name: str,
        description: Optional[str],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update(self, job_role_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def set_active(self, job_role_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
