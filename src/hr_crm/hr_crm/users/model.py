from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role

# Never serialized to clients.
SECRET_FIELDS = ("password_hash", "reset_token_hash", "reset_token_expires")


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object, no database access code here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    company_id: Optional[int]
    company_code: Optional[str]
    department_id: Optional[int] = None
    job_role_id: Optional[int] = None
    job_role: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None
    reset_token_hash: Optional[str] = None
    reset_token_expires: Optional[datetime] = None
    created_at: Optional[datetime] = None
