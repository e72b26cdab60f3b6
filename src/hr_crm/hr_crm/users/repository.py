from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_by_company(
        self,
        company_id: Optional[int],
        *,
        department_id: Optional[int] = None,
        active_only: bool = False,
    ) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        company_id: Optional[int],
        company_code: Optional[str],
        department_id: Optional[int],
        job_role_id: Optional[int],
        job_role: Optional[str],
        phone: Optional[str],
    ) -> int:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def update_last_login(self, user_id: int, at: datetime) -> None:
        raise NotImplementedError

    def set_reset_token(self, user_id: int, *, token_hash: str, expires: datetime) -> None:
        raise NotImplementedError

    def update_password(self, user_id: int, password_hash: str) -> bool:
        """Store a new password hash and clear any pending reset token."""
        raise NotImplementedError

    def count_active_in_department(self, department_id: int) -> int:
        raise NotImplementedError

    def count_active_with_job_role(self, job_role_id: int) -> int:
        raise NotImplementedError
