from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller, as seen by services."""

    user_id: int
    name: str
    email: str
    role: Role
    company_id: Optional[int]
    company_code: Optional[str]
    department_id: Optional[int] = None
    job_role: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def is_privileged(self) -> bool:
        return self.role.is_privileged

    def require_role(self, *roles: Role, message: str = "Access denied") -> None:
        if self.is_super_admin:
            return
        if self.role not in roles:
            raise AuthorizationError(message)

    def can_access_company(self, company_id: Optional[int]) -> bool:
        return self.is_super_admin or (company_id is not None and company_id == self.company_id)

    def require_company(self, company_id: Optional[int], message: str = "Access denied") -> None:
        if not self.can_access_company(company_id):
            raise AuthorizationError(message)
