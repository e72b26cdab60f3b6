from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence

from ..core.enums import MeetingPriority, MeetingStatus, MeetingType, YesNo
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, update_clause
from .model import ClientMeeting
from .repository import ClientMeetingRepository

_COLUMNS = """
    meeting_id, company_id, client_name, phone, email, company, meeting_type, priority, location,
    meeting_date, meeting_time, duration, description, follow_up_required, status, created_by,
    created_at, updated_at
"""

_WRITABLE = (
    "client_name",
    "phone",
    "email",
    "company",
    "meeting_type",
    "priority",
    "location",
    "meeting_date",
    "meeting_time",
    "duration",
    "description",
    "follow_up_required",
    "status",
)

_GROUPABLE = ("meeting_type", "priority", "status")


def _row_to_meeting(row: dict) -> ClientMeeting:
    return ClientMeeting(
        meeting_id=int(row["meeting_id"]),
        company_id=row.get("company_id"),
        client_name=row["client_name"],
        phone=row["phone"],
        location=row["location"],
        meeting_date=row["meeting_date"],
        meeting_time=row["meeting_time"],
        email=row.get("email"),
        company=row.get("company"),
        meeting_type=MeetingType(row.get("meeting_type") or MeetingType.ONLINE.value),
        priority=MeetingPriority(row.get("priority") or MeetingPriority.NORMAL.value),
        duration=str(row.get("duration") or "30"),
        description=row.get("description"),
        follow_up_required=YesNo(row.get("follow_up_required") or YesNo.NO.value),
        status=MeetingStatus(row.get("status") or MeetingStatus.SCHEDULED.value),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _db_values(fields: dict) -> dict:
    return {k: (v.value if hasattr(v, "value") else v) for k, v in fields.items()}


class MySQLClientMeetingRepository(ClientMeetingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: List[str], params: list, order: str) -> Sequence[ClientMeeting]:
        sql = f"SELECT {_COLUMNS} FROM client_meetings"
        if where:
            sql += " WHERE " + " AND ".join(where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{sql} ORDER BY {order}", tuple(params))
            return [_row_to_meeting(r) for r in fetchall(cur)]

    def get_by_id(self, meeting_id: int) -> Optional[ClientMeeting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM client_meetings WHERE meeting_id=%s", (int(meeting_id),))
            row = fetchone(cur)
            return _row_to_meeting(row) if row else None

    def list(
        self,
        company_id: Optional[int],
        *,
        on_date: Optional[date] = None,
        status: Optional[MeetingStatus] = None,
        newest_first: bool = False,
    ) -> Sequence[ClientMeeting]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("company_id=%s")
            params.append(int(company_id))
        if on_date is not None:
            where.append("meeting_date=%s")
            params.append(on_date)
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        order = "meeting_date DESC, meeting_time DESC" if newest_first else "meeting_date, meeting_time"
        return self._select(where, params, order)

    def search(
        self,
        company_id: Optional[int],
        *,
        text: Optional[str] = None,
        meeting_type: Optional[MeetingType] = None,
        priority: Optional[MeetingPriority] = None,
        on_date: Optional[date] = None,
    ) -> Sequence[ClientMeeting]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("company_id=%s")
            params.append(int(company_id))
        if text:
            like = f"%{text}%"
            where.append("(client_name LIKE %s OR company LIKE %s OR email LIKE %s)")
            params.extend([like, like, like])
        if meeting_type is not None:
            where.append("meeting_type=%s")
            params.append(meeting_type.value)
        if priority is not None:
            where.append("priority=%s")
            params.append(priority.value)
        if on_date is not None:
            where.append("meeting_date=%s")
            params.append(on_date)
        return self._select(where, params, "meeting_date DESC")

    def create(self, *, company_id: Optional[int], created_by: Optional[int], fields: dict) -> int:
        values = _db_values({k: fields[k] for k in _WRITABLE if k in fields})
        cols = ["company_id", "created_by", *values.keys()]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO client_meetings({', '.join(cols)}) VALUES({', '.join(['%s'] * len(cols))})",
                (company_id, created_by, *values.values()),
            )
            return int(cur.lastrowid)

    def update(self, meeting_id: int, changes: dict) -> bool:
        assignments, params = update_clause(_db_values(changes), _WRITABLE)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE client_meetings SET {assignments} WHERE meeting_id=%s", (*params, int(meeting_id)))
            return cur.rowcount > 0

    def delete(self, meeting_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM client_meetings WHERE meeting_id=%s", (int(meeting_id),))
            return cur.rowcount > 0

    def count_by(self, company_id: Optional[int], column: str) -> Dict[str, int]:
        if column not in _GROUPABLE:
            raise ValueError(f"Cannot group meetings by {column!r}")
        sql = f"SELECT {column} AS label, COUNT(*) AS cnt FROM client_meetings"
        params: tuple = ()
        if company_id is not None:
            sql += " WHERE company_id=%s"
            params = (int(company_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + f" GROUP BY {column}", params)
            return {r["label"]: int(r["cnt"]) for r in fetchall(cur)}

    def count_on(self, company_id: Optional[int], on_date: date) -> int:
        sql = "SELECT COUNT(*) AS cnt FROM client_meetings WHERE meeting_date=%s"
        params: list = [on_date]
        if company_id is not None:
            sql += " AND company_id=%s"
            params.append(int(company_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0
