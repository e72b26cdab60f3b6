from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, update_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT a.attendance_id, a.company_id, a.user_id, a.work_date, a.status, a.in_time, a.out_time,
           a.late_by, a.early_leave, a.over_time, a.total_time, a.notes, a.created_at,
           u.name AS user_name, u.email AS user_email
    FROM attendance a
    LEFT JOIN users u ON u.user_id = a.user_id
"""

_UPDATABLE = (
    "status", "in_time", "out_time", "late_by", "early_leave", "over_time", "total_time", "notes",
)


def _row_to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        company_id=row.get("company_id"),
        user_id=int(row["user_id"]),
        work_date=row["work_date"],
        status=AttendanceStatus(row["status"]),
        in_time=row.get("in_time"),
        out_time=row.get("out_time"),
        late_by=row.get("late_by"),
        early_leave=row.get("early_leave"),
        over_time=row.get("over_time"),
        total_time=row.get("total_time"),
        notes=row.get("notes"),
        created_at=row.get("created_at"),
        user_name=row.get("user_name"),
        user_email=row.get("user_email"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: List[str], params: list, order: str = "a.work_date") -> Sequence[AttendanceRecord]:
        sql = _SELECT + (" WHERE " + " AND ".join(where) if where else "") + f" ORDER BY {order}"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.user_id=%s AND a.work_date=%s", (int(user_id), work_date))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        return self._select(
            ["a.user_id=%s", "a.work_date >= %s", "a.work_date <= %s"],
            [int(user_id), start, end],
        )

    def list_for_company(
        self,
        company_id: Optional[int],
        *,
        work_date: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("a.company_id=%s")
            params.append(int(company_id))
        if work_date is not None:
            where.append("a.work_date=%s")
            params.append(work_date)
        if user_id is not None:
            where.append("a.user_id=%s")
            params.append(int(user_id))
        return self._select(where, params, order="a.work_date DESC, a.in_time DESC")

    def create(
        self,
        *,
        company_id: Optional[int],
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        in_time: Optional[datetime] = None,
        out_time: Optional[datetime] = None,
        late_by: Optional[str] = None,
        early_leave: Optional[str] = None,
        over_time: Optional[str] = None,
        total_time: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(company_id, user_id, work_date, status, in_time, out_time,
                                       late_by, early_leave, over_time, total_time, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    company_id, int(user_id), work_date, status.value, in_time, out_time,
                    late_by, early_leave, over_time, total_time, notes,
                ),
            )
            return int(cur.lastrowid)

    def create_absent(self, *, company_id: int, user_id: int, work_date: date, notes: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance(company_id, user_id, work_date, status, notes)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(company_id), int(user_id), work_date, AttendanceStatus.ABSENT.value, notes),
            )
            return cur.rowcount > 0

    def update(self, attendance_id: int, changes: dict) -> bool:
        changes = dict(changes)
        if isinstance(changes.get("status"), AttendanceStatus):
            changes["status"] = changes["status"].value
        set_sql, params = update_clause(changes, _UPDATABLE)
        if not set_sql:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE attendance SET {set_sql} WHERE attendance_id=%s", (*params, int(attendance_id)))
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def user_ids_with_record(self, user_ids: Iterable[int], work_date: date) -> Set[int]:
        ids = [int(u) for u in user_ids]
        if not ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id FROM attendance WHERE work_date=%s AND user_id IN ({placeholders(ids)})",
                (work_date, *ids),
            )
            return {int(r["user_id"]) for r in fetchall(cur)}

    def status_counts(
        self,
        company_id: Optional[int],
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[AttendanceStatus, int]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("company_id=%s")
            params.append(int(company_id))
        if start is not None:
            where.append("work_date >= %s")
            params.append(start)
        if end is not None:
            where.append("work_date <= %s")
            params.append(end)
        sql = "SELECT status, COUNT(*) AS cnt FROM attendance"
        sql += (" WHERE " + " AND ".join(where) if where else "") + " GROUP BY status"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return {AttendanceStatus(r["status"]): int(r["cnt"]) for r in fetchall(cur)}
