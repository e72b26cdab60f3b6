from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import Leave, LeaveHistoryEntry
from .repository import LeaveRepository

_SELECT = """
    SELECT lv.leave_id, lv.company_id, lv.user_id, lv.leave_type, lv.start_date, lv.end_date, lv.days,
           lv.reason, lv.status, lv.approved_by, lv.remarks, lv.created_at, lv.updated_at,
           u.name AS user_name, u.email AS user_email, u.department_id
    FROM leaves lv
    LEFT JOIN users u ON u.user_id = lv.user_id
"""


def _row_to_leave(row: dict) -> Leave:
    return Leave(
        leave_id=int(row["leave_id"]),
        company_id=row.get("company_id"),
        user_id=int(row["user_id"]),
        leave_type=LeaveType(row["leave_type"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        days=int(row["days"]),
        reason=row["reason"],
        status=LeaveStatus(row.get("status") or LeaveStatus.PENDING.value),
        approved_by=row.get("approved_by"),
        remarks=row.get("remarks"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        user_name=row.get("user_name"),
        user_email=row.get("user_email"),
        department_id=row.get("department_id"),
    )


def _insert_history(cur, leave_id: int, entry: LeaveHistoryEntry) -> None:
    cur.execute(
        """
        INSERT INTO leave_history(leave_id, action, performed_by, role, remarks)
        VALUES(%s,%s,%s,%s,%s)
        """,
        (int(leave_id), entry.action, int(entry.by), entry.role, entry.remarks),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: List[str], params: list) -> Sequence[Leave]:
        sql = _SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY lv.created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]

    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE lv.leave_id=%s", (int(leave_id),))
            row = fetchone(cur)
            if not row:
                return None
            cur.execute(
                """
                SELECT action, performed_by, role, remarks, performed_at
                FROM leave_history WHERE leave_id=%s ORDER BY performed_at, history_id
                """,
                (int(leave_id),),
            )
            history = tuple(
                LeaveHistoryEntry(
                    action=h["action"],
                    by=int(h["performed_by"]),
                    role=h.get("role"),
                    remarks=h.get("remarks"),
                    at=h.get("performed_at"),
                )
                for h in fetchall(cur)
            )
        return replace(_row_to_leave(row), history=history)

    def create(
        self,
        *,
        company_id: int,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days: int,
        reason: str,
        entry: LeaveHistoryEntry,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves(company_id, user_id, leave_type, start_date, end_date, days, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(company_id), int(user_id), leave_type.value, start_date, end_date, int(days), reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            leave_id = int(cur.lastrowid)
            _insert_history(cur, leave_id, entry)
            return leave_id

    def find_overlapping(
        self,
        user_id: int,
        start: date,
        end: date,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[Leave]:
        values = [s.value for s in statuses]
        where = ["lv.user_id=%s", "lv.start_date <= %s", "lv.end_date >= %s"]
        params: list = [int(user_id), end, start]
        if values:
            where.append(f"lv.status IN ({placeholders(values)})")
            params.extend(values)
        return self._select(where, params)

    def list_for_user(self, user_id: int) -> Sequence[Leave]:
        return self._select(["lv.user_id=%s"], [int(user_id)])

    def list_for_company(
        self,
        company_id: Optional[int],
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        on_date: Optional[date] = None,
        department_id: Optional[int] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[Leave], int]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("lv.company_id=%s")
            params.append(int(company_id))
        if status is not None:
            where.append("lv.status=%s")
            params.append(status.value)
        if leave_type is not None:
            where.append("lv.leave_type=%s")
            params.append(leave_type.value)
        if on_date is not None:
            where.append("lv.start_date <= %s AND lv.end_date >= %s")
            params.extend([on_date, on_date])
        if department_id is not None:
            where.append("u.department_id=%s")
            params.append(int(department_id))
        if search:
            like = f"%{search}%"
            where.append("(u.name LIKE %s OR u.email LIKE %s OR lv.reason LIKE %s)")
            params.extend([like] * 3)
        clause = (" WHERE " + " AND ".join(where)) if where else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS cnt FROM leaves lv LEFT JOIN users u ON u.user_id = lv.user_id" + clause,
                tuple(params),
            )
            total = int(fetchone(cur)["cnt"])
            cur.execute(
                _SELECT + clause + " ORDER BY lv.created_at DESC, lv.leave_id DESC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_leave(r) for r in fetchall(cur)], total

    def set_status(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        approved_by: Optional[int],
        remarks: Optional[str],
        entry: LeaveHistoryEntry,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaves SET status=%s, approved_by=%s, remarks=COALESCE(%s, remarks)
                WHERE leave_id=%s
                """,
                (status.value, approved_by, remarks, int(leave_id)),
            )
            if cur.rowcount == 0:
                return False
            _insert_history(cur, leave_id, entry)
            return True

    def delete(self, leave_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leaves WHERE leave_id=%s", (int(leave_id),))
            return cur.rowcount > 0

    def status_totals(
        self,
        company_id: Optional[int],
        *,
        user_id: Optional[int] = None,
        department_id: Optional[int] = None,
    ) -> Dict[LeaveStatus, Tuple[int, int]]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("lv.company_id=%s")
            params.append(int(company_id))
        if user_id is not None:
            where.append("lv.user_id=%s")
            params.append(int(user_id))
        if department_id is not None:
            where.append("u.department_id=%s")
            params.append(int(department_id))
        sql = (
            "SELECT lv.status, COUNT(*) AS cnt, COALESCE(SUM(lv.days), 0) AS total_days"
            " FROM leaves lv LEFT JOIN users u ON u.user_id = lv.user_id"
        )
        sql += (" WHERE " + " AND ".join(where) if where else "") + " GROUP BY lv.status"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return {LeaveStatus(r["status"]): (int(r["cnt"]), int(r["total_days"])) for r in fetchall(cur)}

    def approved_days_by_type(self, user_id: int, year: int) -> Dict[LeaveType, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_type, COALESCE(SUM(days), 0) AS used
                FROM leaves
                WHERE user_id=%s AND status=%s AND start_date >= %s AND start_date <= %s
                GROUP BY leave_type
                """,
                (int(user_id), LeaveStatus.APPROVED.value, date(year, 1, 1), date(year, 12, 31)),
            )
            return {LeaveType(r["leave_type"]): int(r["used"]) for r in fetchall(cur)}
