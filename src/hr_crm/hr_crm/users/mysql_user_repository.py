from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, placeholders
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, name, email, password_hash, role, company_id, company_code, department_id,
    job_role_id, job_role, phone, is_active, last_login, reset_token_hash, reset_token_expires, created_at
"""


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        company_id=row.get("company_id"),
        company_code=row.get("company_code"),
        department_id=row.get("department_id"),
        job_role_id=row.get("job_role_id"),
        job_role=row.get("job_role"),
        phone=row.get("phone"),
        is_active=as_bool(row.get("is_active")),
        last_login=row.get("last_login"),
        reset_token_hash=row.get("reset_token_hash"),
        reset_token_expires=row.get("reset_token_expires"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where}", params)
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._one("user_id=%s", (int(user_id),))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._one("email=%s", ((email or "").strip().lower(),))

    def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        return self._one("reset_token_hash=%s", (token_hash,))

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN ({placeholders(ids)})", tuple(ids))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_company(
        self,
        company_id: Optional[int],
        *,
        department_id: Optional[int] = None,
        active_only: bool = False,
    ) -> Sequence[User]:
        where = ["1=1"]
        params: list = []
        if company_id is not None:
            where.append("company_id=%s")
            params.append(int(company_id))
        if department_id is not None:
            where.append("department_id=%s")
            params.append(int(department_id))
        if active_only:
            where.append("is_active=1")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {' AND '.join(where)} ORDER BY name",
                tuple(params),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, company_id, company_code,
                                  department_id, job_role_id, job_role, phone, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (name, email, password_hash, role.value, company_id, company_code,
                 department_id, job_role_id, job_role, phone),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def update_last_login(self, user_id: int, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (at, int(user_id)))

    def set_reset_token(self, user_id: int, *, token_hash: str, expires: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET reset_token_hash=%s, reset_token_expires=%s WHERE user_id=%s",
                (token_hash, expires, int(user_id)),
            )

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET password_hash=%s, reset_token_hash=NULL, reset_token_expires=NULL
                WHERE user_id=%s
                """,
                (password_hash, int(user_id)),
            )
            return cur.rowcount > 0

    def count_active_in_department(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM users WHERE department_id=%s AND is_active=1",
                (int(department_id),),
            )
            return int((fetchone(cur) or {}).get("n") or 0)

    def count_active_with_job_role(self, job_role_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM users WHERE job_role_id=%s AND is_active=1",
                (int(job_role_id),),
            )
            return int((fetchone(cur) or {}).get("n") or 0)
