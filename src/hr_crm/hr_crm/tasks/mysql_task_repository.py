from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from ..core.enums import OPEN_TASK_STATUSES, NotificationType, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_bool,
    db_cursor,
    dump_json,
    fetchall,
    fetchone,
    load_json,
    placeholders,
    update_clause,
)
from .model import AssigneeStatus, Notification, Task
from .repository import NotificationRepository, TaskRepository

_SELECT = """
    SELECT t.task_id, t.company_id, t.title, t.description, t.due_date, t.whatsapp_number,
           t.priority_days, t.files, t.voice_note, t.created_by, t.is_active, t.overall_status,
           t.marked_overdue_at, t.created_at, t.updated_at, c.name AS created_by_name
    FROM tasks t
    LEFT JOIN users c ON c.user_id = t.created_by
"""

_OPEN_VALUES = tuple(s.value for s in OPEN_TASK_STATUSES)


def _row_to_task(row: dict, entries: Sequence[AssigneeStatus]) -> Task:
    return Task(
        task_id=int(row["task_id"]),
        company_id=row.get("company_id"),
        title=row["title"],
        created_by=int(row["created_by"]),
        description=row.get("description"),
        due_date=row.get("due_date"),
        whatsapp_number=row.get("whatsapp_number"),
        priority_days=int(row.get("priority_days") or 1),
        files=tuple(load_json(row.get("files"))),
        voice_note=row.get("voice_note"),
        is_active=as_bool(row.get("is_active")),
        overall_status=TaskStatus(row.get("overall_status") or TaskStatus.PENDING.value),
        marked_overdue_at=row.get("marked_overdue_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        status_by_user=tuple(entries),
        created_by_name=row.get("created_by_name"),
    )


def _load_tasks(cur, rows: List[dict]) -> List[Task]:
    """Attach status-by-user entries (with assignee names) to task rows."""
    if not rows:
        return []
    ids = [int(r["task_id"]) for r in rows]
    cur.execute(
        f"""
        SELECT a.task_id, a.user_id, a.status, u.name, u.role
        FROM task_assignees a
        LEFT JOIN users u ON u.user_id = a.user_id
        WHERE a.task_id IN ({placeholders(ids)})
        ORDER BY a.task_id, a.user_id
        """,
        tuple(ids),
    )
    entries: Dict[int, List[AssigneeStatus]] = defaultdict(list)
    for r in fetchall(cur):
        entries[int(r["task_id"])].append(
            AssigneeStatus(
                user_id=int(r["user_id"]),
                status=TaskStatus(r["status"]),
                name=r.get("name"),
                role=r.get("role"),
            )
        )
    return [_row_to_task(r, entries.get(int(r["task_id"]), [])) for r in rows]


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE t.task_id=%s", (int(task_id),))
            row = fetchone(cur)
            if not row:
                return None
            return _load_tasks(cur, [row])[0]

    def create(
        self,
        *,
        company_id: Optional[int],
        title: str,
        description: Optional[str],
        due_date: Optional[datetime],
        whatsapp_number: Optional[str],
        priority_days: int,
        files: Sequence[str],
        voice_note: Optional[str],
        created_by: int,
        assignee_ids: Sequence[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks(company_id, title, description, due_date, whatsapp_number,
                                  priority_days, files, voice_note, created_by, overall_status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    company_id,
                    title,
                    description,
                    due_date,
                    whatsapp_number,
                    int(priority_days),
                    dump_json(list(files)),
                    voice_note,
                    int(created_by),
                    TaskStatus.PENDING.value,
                ),
            )
            task_id = int(cur.lastrowid)
            if assignee_ids:
                cur.executemany(
                    "INSERT INTO task_assignees(task_id, user_id, status) VALUES(%s,%s,%s)",
                    [(task_id, int(uid), TaskStatus.PENDING.value) for uid in assignee_ids],
                )
            return task_id

    def update(self, task_id: int, changes: dict) -> bool:
        if "files" in changes:
            changes = {**changes, "files": dump_json(list(changes["files"]))}
        assignments, params = update_clause(
            changes,
            ("title", "description", "due_date", "whatsapp_number", "priority_days", "files", "voice_note"),
        )
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE tasks SET {assignments} WHERE task_id=%s", (*params, int(task_id)))
            return cur.rowcount > 0

    def sync_assignees(self, task_id: int, user_ids: Sequence[int]) -> None:
        wanted = [int(u) for u in user_ids]
        with db_cursor(self._conn_factory) as (_, cur):
            if wanted:
                cur.execute(
                    f"DELETE FROM task_assignees WHERE task_id=%s AND user_id NOT IN ({placeholders(wanted)})",
                    (int(task_id), *wanted),
                )
                cur.executemany(
                    "INSERT IGNORE INTO task_assignees(task_id, user_id, status) VALUES(%s,%s,%s)",
                    [(int(task_id), uid, TaskStatus.PENDING.value) for uid in wanted],
                )
            else:
                cur.execute("DELETE FROM task_assignees WHERE task_id=%s", (int(task_id),))

    def set_assignee_status(self, task_id: int, user_id: int, status: TaskStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE task_assignees SET status=%s WHERE task_id=%s AND user_id=%s",
                (status.value, int(task_id), int(user_id)),
            )
            return cur.rowcount > 0

    def set_overall_status(self, task_id: int, status: TaskStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE tasks SET overall_status=%s WHERE task_id=%s", (status.value, int(task_id)))
            return cur.rowcount > 0

    def soft_delete(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE tasks SET is_active=0 WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def _list(self, where: str, params: tuple) -> List[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE t.is_active=1 AND {where} ORDER BY t.created_at DESC", params)
            return _load_tasks(cur, fetchall(cur))

    def list_created_by(self, user_id: int) -> Sequence[Task]:
        return self._list("t.created_by=%s", (int(user_id),))

    def list_assigned_to(self, user_id: int) -> Sequence[Task]:
        return self._list(
            "t.task_id IN (SELECT task_id FROM task_assignees WHERE user_id=%s)",
            (int(user_id),),
        )

    def list_involving(self, user_id: int) -> Sequence[Task]:
        return self._list(
            "(t.created_by=%s OR t.task_id IN (SELECT task_id FROM task_assignees WHERE user_id=%s))",
            (int(user_id), int(user_id)),
        )

    def status_counts_for_user(self, user_id: int) -> Dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.status, COUNT(*) AS cnt
                FROM task_assignees a
                JOIN tasks t ON t.task_id = a.task_id
                WHERE a.user_id=%s AND t.is_active=1
                GROUP BY a.status
                """,
                (int(user_id),),
            )
            return {r["status"]: int(r["cnt"]) for r in fetchall(cur)}

    def status_counts_for_company(self, company_id: Optional[int]) -> Dict[str, int]:
        sql = "SELECT overall_status, COUNT(*) AS cnt FROM tasks WHERE is_active=1"
        params: tuple = ()
        if company_id is not None:
            sql += " AND company_id=%s"
            params = (int(company_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " GROUP BY overall_status", params)
            return {r["overall_status"]: int(r["cnt"]) for r in fetchall(cur)}

    def list_due_unmarked(self, now: datetime) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + """
                WHERE t.is_active=1 AND t.due_date IS NOT NULL AND t.due_date < %s
                  AND t.marked_overdue_at IS NULL
                ORDER BY t.due_date
                """,
                (now,),
            )
            return _load_tasks(cur, fetchall(cur))

    def mark_overdue(self, task_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE task_assignees SET status=%s WHERE task_id=%s AND status IN ({placeholders(_OPEN_VALUES)})",
                (TaskStatus.OVERDUE.value, int(task_id), *_OPEN_VALUES),
            )
            cur.execute(
                """
                UPDATE tasks SET overall_status=%s, marked_overdue_at=%s
                WHERE task_id=%s AND marked_overdue_at IS NULL
                """,
                (TaskStatus.OVERDUE.value, now, int(task_id)),
            )
            return cur.rowcount > 0

    def list_marked_between(self, start: datetime, end: datetime) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE t.marked_overdue_at >= %s AND t.marked_overdue_at < %s ORDER BY t.marked_overdue_at",
                (start, end),
            )
            return _load_tasks(cur, fetchall(cur))


def _row_to_notification(row: dict) -> Notification:
    return Notification(
        notification_id=int(row["notification_id"]),
        user_id=int(row["user_id"]),
        title=row["title"],
        message=row["message"],
        type=NotificationType(row["type"]),
        related_task_id=row.get("related_task_id"),
        metadata=load_json(row.get("metadata"), default={}),
        is_read=as_bool(row.get("is_read"), default=False),
        created_at=row.get("created_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        related_task_id: Optional[int] = None,
        metadata: Optional[dict] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, title, message, type, related_task_id, metadata)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), title, message, type.value, related_task_id, dump_json(metadata or {})),
            )
            return int(cur.lastrowid)

    def create_many(self, rows: Iterable[dict]) -> int:
        values = [
            (
                int(r["user_id"]),
                r["title"],
                r["message"],
                r["type"].value,
                r.get("related_task_id"),
                dump_json(r.get("metadata") or {}),
            )
            for r in rows
        ]
        if not values:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO notifications(user_id, title, message, type, related_task_id, metadata)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                values,
            )
            return len(values)

    def list_for_user(self, user_id: int) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, user_id, title, message, type, related_task_id, metadata, is_read, created_at
                FROM notifications WHERE user_id=%s
                ORDER BY created_at DESC, notification_id DESC
                """,
                (int(user_id),),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def unread_count(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS cnt FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0

    def mark_read(self, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            return cur.rowcount > 0

    def mark_all_read(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0", (int(user_id),))
            return int(cur.rowcount)
