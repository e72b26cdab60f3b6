from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, update_clause
from .model import Department
from .repository import DepartmentRepository

_COLUMNS = "department_id, company_id, name, description, is_active, created_by, created_at"


def _row_to_department(row: dict) -> Department:
    return Department(
        department_id=int(row["department_id"]),
        company_id=int(row["company_id"]),
        name=row["name"],
        description=row.get("description"),
        is_active=as_bool(row.get("is_active")),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
    )


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, department_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM departments WHERE department_id=%s", (int(department_id),))
            row = fetchone(cur)
            return _row_to_department(row) if row else None

    def find_active_by_name(self, company_id: int, name: str, *, exclude_id: Optional[int] = None) -> Optional[Department]:
        sql = f"SELECT {_COLUMNS} FROM departments WHERE company_id=%s AND LOWER(name)=LOWER(%s) AND is_active=1"
        params: list = [int(company_id), name.strip()]
        if exclude_id is not None:
            sql += " AND department_id<>%s"
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            row = fetchone(cur)
            return _row_to_department(row) if row else None

    def list_active(self, company_id: Optional[int]) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            if company_id is None:
                cur.execute(f"SELECT {_COLUMNS} FROM departments WHERE is_active=1 ORDER BY name")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM departments WHERE company_id=%s AND is_active=1 ORDER BY name",
                    (int(company_id),),
                )
            return [_row_to_department(r) for r in fetchall(cur)]

    def create(self, *, company_id: int, name: str, description: Optional[str], created_by: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO departments(company_id, name, description, created_by) VALUES(%s,%s,%s,%s)",
                (int(company_id), name, description, created_by),
            )
            return int(cur.lastrowid)

    def update(self, department_id: int, changes: dict) -> bool:
        assignments, params = update_clause(changes, ("name", "description"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE departments SET {assignments} WHERE department_id=%s", (*params, int(department_id)))
            return cur.rowcount > 0

    def set_active(self, department_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE departments SET is_active=%s WHERE department_id=%s",
                (1 if is_active else 0, int(department_id)),
            )
            return cur.rowcount > 0
