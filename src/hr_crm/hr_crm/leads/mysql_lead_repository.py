from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..core.enums import LeadStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, update_clause, window_clause
from .model import Lead, LeadNote
from .repository import LeadRepository

_SELECT = """
    SELECT l.lead_id, l.company_id, l.name, l.phone, l.email, l.source, l.status, l.assigned_to,
           l.created_by, l.created_at, l.updated_at, u.name AS assigned_to_name, u.email AS assigned_to_email
    FROM leads l
    LEFT JOIN users u ON u.user_id = l.assigned_to
"""


def _load_leads(cur, rows: List[dict]) -> List[Lead]:
    if not rows:
        return []
    ids = [int(r["lead_id"]) for r in rows]
    cur.execute(
        f"""
        SELECT note_id, lead_id, message, created_by, created_at
        FROM lead_notes WHERE lead_id IN ({placeholders(ids)})
        ORDER BY created_at, note_id
        """,
        tuple(ids),
    )
    notes: Dict[int, List[LeadNote]] = defaultdict(list)
    for r in fetchall(cur):
        notes[int(r["lead_id"])].append(
            LeadNote(
                note_id=int(r["note_id"]),
                message=r["message"],
                created_by=r.get("created_by"),
                created_at=r.get("created_at"),
            )
        )
    return [
        Lead(
            lead_id=int(r["lead_id"]),
            company_id=r.get("company_id"),
            name=r["name"],
            phone=r["phone"],
            email=r.get("email"),
            source=r.get("source"),
            status=LeadStatus(r.get("status") or LeadStatus.NEW.value),
            assigned_to=r.get("assigned_to"),
            assigned_to_name=r.get("assigned_to_name"),
            assigned_to_email=r.get("assigned_to_email"),
            created_by=r.get("created_by"),
            created_at=r.get("created_at"),
            updated_at=r.get("updated_at"),
            notes=tuple(notes.get(int(r["lead_id"]), [])),
        )
        for r in rows
    ]


class MySQLLeadRepository(LeadRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, lead_id: int) -> Optional[Lead]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE l.lead_id=%s", (int(lead_id),))
            row = fetchone(cur)
            return _load_leads(cur, [row])[0] if row else None

    def list(
        self,
        company_id: Optional[int],
        *,
        status: Optional[LeadStatus] = None,
        visible_to: Optional[int] = None,
    ) -> Sequence[Lead]:
        where: List[str] = []
        params: list = []
        if company_id is not None:
            where.append("l.company_id=%s")
            params.append(int(company_id))
        if status is not None:
            where.append("l.status=%s")
            params.append(status.value)
        if visible_to is not None:
            where.append("(l.assigned_to=%s OR l.created_by=%s)")
            params.extend([int(visible_to), int(visible_to)])
        sql = _SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY l.created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return _load_leads(cur, fetchall(cur))

    def create(
        self,
        *,
        company_id: Optional[int],
        name: str,
        phone: str,
        email: Optional[str],
        source: Optional[str],
        status: LeadStatus,
        assigned_to: Optional[int],
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leads(company_id, name, phone, email, source, status, assigned_to, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (company_id, name, phone, email, source, status.value, assigned_to, created_by),
            )
            return int(cur.lastrowid)

    def update(self, lead_id: int, changes: dict) -> bool:
        if isinstance(changes.get("status"), LeadStatus):
            changes = {**changes, "status": changes["status"].value}
        assignments, params = update_clause(changes, ("name", "phone", "email", "source", "status", "assigned_to"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE leads SET {assignments} WHERE lead_id=%s", (*params, int(lead_id)))
            return cur.rowcount > 0

    def add_note(self, lead_id: int, *, message: str, created_by: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO lead_notes(lead_id, message, created_by) VALUES(%s,%s,%s)",
                (int(lead_id), message, created_by),
            )
            return int(cur.lastrowid)

    def count_by_status(
        self,
        company_id: Optional[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, int]:
        where, params = window_clause("created_at", start, end)
        if company_id is not None:
            where.append("company_id=%s")
            params.append(int(company_id))
        sql = "SELECT status, COUNT(*) AS cnt FROM leads"
        if where:
            sql += " WHERE " + " AND ".join(where)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " GROUP BY status", tuple(params))
            return {r["status"]: int(r["cnt"]) for r in fetchall(cur)}
