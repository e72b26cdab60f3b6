from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from ..core.enums import FollowUpStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, window_clause
from .model import FollowUp
from .repository import FollowUpRepository

_SELECT = """
    SELECT f.followup_id, f.company_id, f.lead_id, f.agent_id, f.follow_date, f.status, f.note,
           f.created_at, l.name AS lead_name, l.phone AS lead_phone
    FROM followups f
    LEFT JOIN leads l ON l.lead_id = f.lead_id
"""


def _row_to_followup(row: dict) -> FollowUp:
    return FollowUp(
        followup_id=int(row["followup_id"]),
        company_id=row.get("company_id"),
        lead_id=int(row["lead_id"]),
        agent_id=int(row["agent_id"]),
        follow_date=row["follow_date"],
        status=FollowUpStatus(row.get("status") or FollowUpStatus.PENDING.value),
        note=row.get("note"),
        created_at=row.get("created_at"),
        lead_name=row.get("lead_name"),
        lead_phone=row.get("lead_phone"),
    )


class MySQLFollowUpRepository(FollowUpRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: List[str], params: list) -> Sequence[FollowUp]:
        sql = _SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY f.follow_date"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_followup(r) for r in fetchall(cur)]

    def get_by_id(self, followup_id: int) -> Optional[FollowUp]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE f.followup_id=%s", (int(followup_id),))
            row = fetchone(cur)
            return _row_to_followup(row) if row else None

    def create(
        self,
        *,
        company_id: Optional[int],
        lead_id: int,
        agent_id: int,
        follow_date: datetime,
        note: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO followups(company_id, lead_id, agent_id, follow_date, status, note)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (company_id, int(lead_id), int(agent_id), follow_date, FollowUpStatus.PENDING.value, note),
            )
            return int(cur.lastrowid)

    def list(
        self,
        company_id: Optional[int],
        *,
        agent_id: Optional[int] = None,
        status: Optional[FollowUpStatus] = None,
    ) -> Sequence[FollowUp]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("f.company_id=%s")
            params.append(int(company_id))
        if agent_id is not None:
            where.append("f.agent_id=%s")
            params.append(int(agent_id))
        if status is not None:
            where.append("f.status=%s")
            params.append(status.value)
        return self._select(where, params)

    def list_for_agent_between(
        self,
        agent_id: int,
        *,
        start: datetime,
        end: datetime,
        status: FollowUpStatus = FollowUpStatus.PENDING,
    ) -> Sequence[FollowUp]:
        where, params = window_clause("f.follow_date", start, end)
        where += ["f.agent_id=%s", "f.status=%s"]
        params += [int(agent_id), status.value]
        return self._select(where, params)

    def set_status(self, followup_id: int, status: FollowUpStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE followups SET status=%s WHERE followup_id=%s", (status.value, int(followup_id)))
            return cur.rowcount > 0

    def count_pending(
        self,
        company_id: Optional[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        where, params = window_clause("follow_date", start, end)
        where.append("status=%s")
        params.append(FollowUpStatus.PENDING.value)
        if company_id is not None:
            where.append("company_id=%s")
            params.append(int(company_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM followups WHERE " + " AND ".join(where), tuple(params))
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0
