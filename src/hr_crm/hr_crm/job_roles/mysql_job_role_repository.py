from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, update_clause
from .model import JobRole
from .repository import JobRoleRepository

_SELECT = """
    SELECT j.job_role_id, j.company_id, j.department_id, j.name, j.description, j.is_active,
           j.created_by, j.created_at, d.name AS department_name
    FROM job_roles j
    LEFT JOIN departments d ON d.department_id = j.department_id
"""


def _row_to_job_role(row: dict) -> JobRole:
    return JobRole(
        job_role_id=int(row["job_role_id"]),
        company_id=int(row["company_id"]),
        department_id=int(row["department_id"]),
        name=row["name"],
        description=row.get("description"),
        is_active=as_bool(row.get("is_active")),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
        department_name=row.get("department_name"),
    )


class MySQLJobRoleRepository(JobRoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, job_role_id: int) -> Optional[JobRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE j.job_role_id=%s", (int(job_role_id),))
            row = fetchone(cur)
            return _row_to_job_role(row) if row else None

    def find_active_by_name(
        self,
        *,
        company_id: int,
        department_id: int,
        name: str,
        exclude_id: Optional[int] = None,
    ) -> Optional[JobRole]:
        sql = _SELECT + """
            WHERE j.company_id=%s AND j.department_id=%s AND LOWER(j.name)=LOWER(%s) AND j.is_active=1
        """
        params: list = [int(company_id), int(department_id), name.strip()]
        if exclude_id is not None:
            sql += " AND j.job_role_id<>%s"
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            row = fetchone(cur)
            return _row_to_job_role(row) if row else None

    def list_active(self, *, company_id: Optional[int], department_id: Optional[int] = None) -> Sequence[JobRole]:
        where = ["j.is_active=1"]
        params: list = []
        if company_id is not None:
            where.append("j.company_id=%s")
            params.append(int(company_id))
        if department_id is not None:
            where.append("j.department_id=%s")
            params.append(int(department_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE {' AND '.join(where)} ORDER BY j.name", tuple(params))
            return [_row_to_job_role(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: int,
        department_id: int,
        name: str,
        description: Optional[str],
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO job_roles(company_id, department_id, name, description, created_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(company_id), int(department_id), name, description, created_by),
            )
            return int(cur.lastrowid)

    def update(self, job_role_id: int, changes: dict) -> bool:
        assignments, params = update_clause(changes, ("name", "description", "department_id", "company_id"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE job_roles SET {assignments} WHERE job_role_id=%s", (*params, int(job_role_id)))
            return cur.rowcount > 0

    def set_active(self, job_role_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE job_roles SET is_active=%s WHERE job_role_id=%s",
                (1 if is_active else 0, int(job_role_id)),
            )
            return cur.rowcount > 0
