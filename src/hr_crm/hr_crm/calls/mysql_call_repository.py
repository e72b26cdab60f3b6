from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import CallStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, window_clause
from .model import AgentCallCount, CallLog
from .repository import CallLogRepository

_SELECT = """
    SELECT c.call_id, c.company_id, c.lead_id, c.agent_id, c.start_time, c.end_time, c.duration,
           c.status, c.notes, l.name AS lead_name, l.phone AS lead_phone
    FROM call_logs c
    LEFT JOIN leads l ON l.lead_id = c.lead_id
"""


def _row_to_call(row: dict) -> CallLog:
    return CallLog(
        call_id=int(row["call_id"]),
        company_id=row.get("company_id"),
        lead_id=int(row["lead_id"]),
        agent_id=int(row["agent_id"]),
        start_time=row["start_time"],
        end_time=row.get("end_time"),
        duration=int(row.get("duration") or 0),
        status=CallStatus(row["status"]) if row.get("status") else None,
        notes=row.get("notes"),
        lead_name=row.get("lead_name"),
        lead_phone=row.get("lead_phone"),
    )


def _scoped(column: str, company_id: Optional[int], start, end) -> tuple[str, list]:
    where, params = window_clause("c.start_time", start, end)
    if company_id is not None:
        where.append(f"{column}=%s")
        params.append(int(company_id))
    return (" WHERE " + " AND ".join(where)) if where else "", params


class MySQLCallLogRepository(CallLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, call_id: int) -> Optional[CallLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE c.call_id=%s", (int(call_id),))
            row = fetchone(cur)
            return _row_to_call(row) if row else None

    def start(self, *, company_id: Optional[int], lead_id: int, agent_id: int, start_time: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO call_logs(company_id, lead_id, agent_id, start_time) VALUES(%s,%s,%s,%s)",
                (company_id, int(lead_id), int(agent_id), start_time),
            )
            return int(cur.lastrowid)

    def finish(
        self,
        call_id: int,
        *,
        end_time: datetime,
        duration: int,
        status: CallStatus,
        notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE call_logs SET end_time=%s, duration=%s, status=%s, notes=%s
                WHERE call_id=%s AND end_time IS NULL
                """,
                (end_time, int(duration), status.value, notes, int(call_id)),
            )
            return cur.rowcount > 0

    def list_for_agent(self, agent_id: int) -> Sequence[CallLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE c.agent_id=%s ORDER BY c.start_time DESC", (int(agent_id),))
            return [_row_to_call(r) for r in fetchall(cur)]

    def count(self, company_id: Optional[int], *, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        where, params = _scoped("c.company_id", company_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM call_logs c" + where, tuple(params))
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0

    def count_by_agent(
        self,
        company_id: Optional[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AgentCallCount]:
        where, params = _scoped("c.company_id", company_id, start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT c.agent_id, u.name AS agent_name, COUNT(*) AS calls
                FROM call_logs c
                JOIN users u ON u.user_id = c.agent_id
                {where}
                GROUP BY c.agent_id, u.name
                ORDER BY calls DESC, u.name
                """,
                tuple(params),
            )
            return [
                AgentCallCount(agent_id=int(r["agent_id"]), agent_name=r["agent_name"], calls=int(r["calls"]))
                for r in fetchall(cur)
            ]
