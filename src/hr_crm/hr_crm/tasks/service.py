from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.serializers import to_json
from ..common.validators import (
    optional_str,
    parse_choice,
    parse_int,
    require_length_between,
    require_max_length,
    require_phone,
)
from ..core.enums import OPEN_TASK_STATUSES, NotificationType, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import Notification, OverdueSummary, OverdueSweepResult, Task
from .repository import NotificationRepository, TaskRepository

logger = logging.getLogger(__name__)

_DONE = frozenset({TaskStatus.COMPLETED, TaskStatus.APPROVED})


def compute_overall_status(statuses: Iterable[TaskStatus]) -> TaskStatus:
    """Overall task status derived from the status-by-user entries."""
    statuses = list(statuses)
    if not statuses:
        return TaskStatus.PENDING
    if all(s in _DONE for s in statuses):
        return TaskStatus.COMPLETED
    if TaskStatus.OVERDUE in statuses:
        return TaskStatus.OVERDUE
    has_open = any(s in OPEN_TASK_STATUSES for s in statuses)
    if TaskStatus.REJECTED in statuses and not has_open:
        return TaskStatus.REJECTED
    if any(s != TaskStatus.PENDING for s in statuses):
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def group_tasks_by_day(tasks: Sequence[Task], serial_key: str = "serialNo") -> "OrderedDict[str, List[dict]]":
    """Group by creation day (``DD-MM-YYYY``), newest day first, numbering tasks within each day."""
    buckets: Dict[date, List[Task]] = {}
    for task in tasks:
        created = task.created_at or datetime.min
        buckets.setdefault(created.date(), []).append(task)

    grouped: "OrderedDict[str, List[dict]]" = OrderedDict()
    for day in sorted(buckets, reverse=True):
        ordered = sorted(buckets[day], key=lambda t: t.created_at or datetime.min, reverse=True)
        grouped[day.strftime("%d-%m-%Y")] = [
            {**to_json(task), serial_key: index} for index, task in enumerate(ordered, start=1)
        ]
    return grouped


def parse_assignee_ids(raw) -> List[int]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, (str, int)):
        raw = [raw]
    ids: List[int] = []
    for value in raw:
        user_id = parse_int(value, "Assigned user")
        if user_id not in ids:
            ids.append(user_id)
    return ids


def _file_list(raw) -> List[str]:
    """A single path (form posts send one value as a string) or a list of paths."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Files must be a list of paths")
    return [str(f).strip() for f in raw if str(f).strip()]


class TaskService:
    """Use cases: task assignment, status tracking, notifications and overdue marking."""

    def __init__(
        self,
        tasks: TaskRepository,
        notifications: NotificationRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._tasks = tasks
        self._notifications = notifications
        self._users = users
        self._clock = clock

    # --- validation -------------------------------------------------------------------------

    def _clean_fields(self, data: dict, *, partial: bool) -> dict:
        clean: dict = {}
        if not partial or "title" in data:
            clean["title"] = require_length_between(data.get("title"), "Title", 3, 100)
        if not partial or "description" in data:
            clean["description"] = require_max_length(optional_str(data.get("description")), "Description", 1000)
        if not partial or "due_date" in data:
            due = data.get("due_date")
            if due in (None, ""):
                if not partial:
                    clean["due_date"] = None
            else:
                due_date = parse_iso_datetime(due, "Due date")
                if due_date <= self._clock():
                    raise ValidationError("Due date must be in the future")
                clean["due_date"] = due_date
        if not partial or "whatsapp_number" in data:
            number = optional_str(data.get("whatsapp_number"))
            clean["whatsapp_number"] = require_phone(number, "WhatsApp number") if number else None
        if not partial or "priority_days" in data:
            raw = data.get("priority_days")
            days = 1 if raw in (None, "") else parse_int(raw, "Priority days")
            if not 1 <= days <= 30:
                raise ValidationError("Priority days must be between 1 and 30")
            clean["priority_days"] = days
        if not partial or "files" in data:
            clean["files"] = _file_list(data.get("files"))
        if not partial or "voice_note" in data:
            clean["voice_note"] = optional_str(data.get("voice_note"))
        return clean

    def _resolve_assignees(self, actor: AuthContext, assignee_ids: Sequence[int]) -> List[User]:
        if not assignee_ids:
            raise ValidationError("At least one assignee is required")
        if not actor.is_privileged and list(assignee_ids) != [actor.user_id]:
            raise AuthorizationError("You can only assign tasks to yourself.")

        users = {u.user_id: u for u in self._users.list_by_ids(assignee_ids)}
        resolved = []
        for user_id in assignee_ids:
            user = users.get(user_id)
            if not user or not user.is_active:
                raise ValidationError(f"User {user_id} not found or inactive")
            if not actor.is_super_admin and user.company_id != actor.company_id:
                raise AuthorizationError("You can only assign tasks to users of your company")
            resolved.append(user)
        return resolved

    def _notify_assigned(self, actor: AuthContext, task_id: int, title: str, user_ids: Iterable[int]) -> int:
        rows = [
            {
                "user_id": uid,
                "title": "New Task Assigned",
                "message": f'{actor.name} assigned you a new task: "{title}"',
                "type": NotificationType.TASK_ASSIGNED,
                "related_task_id": task_id,
                "metadata": {"assignedBy": actor.user_id},
            }
            for uid in user_ids
            if uid != actor.user_id
        ]
        return self._notifications.create_many(rows) if rows else 0

    def _get_active(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(int(task_id))
        if not task or not task.is_active:
            raise NotFoundError("Task not found")
        return task

    # --- creation -----------------------------------------------------------------------------

    def create_for_self(self, *, actor: AuthContext, data: dict) -> Task:
        return self.create_for_others(actor=actor, data=data, assigned_users=[actor.user_id])

    def create_for_others(self, *, actor: AuthContext, data: dict, assigned_users) -> Task:
        clean = self._clean_fields(data, partial=False)
        assignees = self._resolve_assignees(actor, parse_assignee_ids(assigned_users))
        assignee_ids = [u.user_id for u in assignees]

        task_id = self._tasks.create(
            company_id=actor.company_id,
            created_by=actor.user_id,
            assignee_ids=assignee_ids,
            **clean,
        )
        self._notify_assigned(actor, task_id, clean["title"], assignee_ids)
        logger.info("Task %s created by user %s for %s", task_id, actor.user_id, assignee_ids)
        return self._tasks.get_by_id(task_id)

    # --- queries ------------------------------------------------------------------------------

    def list_tasks(self, *, actor: AuthContext, status: Optional[str] = None) -> "OrderedDict[str, List[dict]]":
        tasks = list(self._tasks.list_involving(actor.user_id))
        if status:
            wanted = parse_choice(TaskStatus, status, "status")
            tasks = [t for t in tasks if any(s.status == wanted for s in t.status_by_user)]
        return group_tasks_by_day(tasks, "serialNo")

    def my_tasks(self, *, actor: AuthContext) -> "OrderedDict[str, List[dict]]":
        return group_tasks_by_day(self._tasks.list_assigned_to(actor.user_id), "mySerialNo")

    def assigned_tasks(self, *, actor: AuthContext) -> "OrderedDict[str, List[dict]]":
        return group_tasks_by_day(self._tasks.list_created_by(actor.user_id), "assignedSerialNo")

    def get_task(self, *, actor: AuthContext, task_id: int) -> Task:
        task = self._get_active(task_id)
        if task.involves(actor.user_id):
            return task
        if actor.is_privileged and actor.can_access_company(task.company_id):
            return task
        raise AuthorizationError("You do not have access to this task")

    def status_counts(self, *, actor: AuthContext) -> Dict[str, int]:
        raw = self._tasks.status_counts_for_user(actor.user_id)
        counts = {s.value: int(raw.get(s.value, 0)) for s in TaskStatus}
        counts["total"] = sum(counts.values())
        return counts

    def overdue_tasks(self, *, actor: AuthContext) -> List[Task]:
        return [t for t in self._tasks.list_assigned_to(actor.user_id) if t.status_for(actor.user_id) == TaskStatus.OVERDUE]

    def assignable_users(self, *, actor: AuthContext) -> Sequence[User]:
        if actor.is_privileged:
            company_id = None if actor.is_super_admin else actor.company_id
            return self._users.list_by_company(company_id, active_only=True)
        me = self._users.get_by_id(actor.user_id)
        return [me] if me else []

    # --- mutation -----------------------------------------------------------------------------

    def update_task(self, *, actor: AuthContext, task_id: int, data: dict, assigned_users=None) -> Task:
        task = self._get_active(task_id)
        if task.created_by != actor.user_id:
            raise AuthorizationError("Only the task creator can update this task")

        clean = self._clean_fields(data, partial=True)
        if clean:
            self._tasks.update(task.task_id, clean)

        if assigned_users is not None:
            assignee_ids = [u.user_id for u in self._resolve_assignees(actor, parse_assignee_ids(assigned_users))]
            self._tasks.sync_assignees(task.task_id, assignee_ids)
            added = [uid for uid in assignee_ids if uid not in task.assignee_ids]
            self._notify_assigned(actor, task.task_id, clean.get("title", task.title), added)
            refreshed = self._tasks.get_by_id(task.task_id)
            self._tasks.set_overall_status(
                task.task_id, compute_overall_status(s.status for s in refreshed.status_by_user)
            )

        return self._tasks.get_by_id(task.task_id)

    def delete_task(self, *, actor: AuthContext, task_id: int) -> None:
        task = self._get_active(task_id)
        if task.created_by != actor.user_id:
            raise AuthorizationError("Only the task creator can delete this task")
        self._tasks.soft_delete(task.task_id)
        logger.info("Task %s deleted by user %s", task.task_id, actor.user_id)

    def update_status(self, *, actor: AuthContext, task_id: int, status) -> Task:
        task = self._get_active(task_id)
        if actor.user_id not in task.assignee_ids:
            raise AuthorizationError("You are not assigned to this task.")
        new_status = parse_choice(TaskStatus, status, "status")

        self._tasks.set_assignee_status(task.task_id, actor.user_id, new_status)
        statuses = [new_status if s.user_id == actor.user_id else s.status for s in task.status_by_user]
        overall = compute_overall_status(statuses)
        self._tasks.set_overall_status(task.task_id, overall)

        if task.created_by != actor.user_id:
            self._notifications.create(
                user_id=task.created_by,
                title="Task Status Updated",
                message=f'{actor.name} changed the status of "{task.title}" to {new_status.value}',
                type=NotificationType.TASK_STATUS_UPDATED,
                related_task_id=task.task_id,
                metadata={"updatedBy": actor.user_id, "status": new_status.value},
            )
        return self._tasks.get_by_id(task.task_id)

    # --- overdue ------------------------------------------------------------------------------

    def mark_overdue_tasks(self, now: Optional[datetime] = None) -> OverdueSweepResult:
        """Mark past-due tasks that still have open work as overdue and notify their assignees."""
        now = now or self._clock()
        candidates = self._tasks.list_due_unmarked(now)
        marked = 0
        sent = 0
        for task in candidates:
            if not task.has_open_status():
                continue
            if not self._tasks.mark_overdue(task.task_id, now):
                continue
            marked += 1
            sent += self._notifications.create_many(
                {
                    "user_id": uid,
                    "title": "Task Overdue",
                    "message": f'Task "{task.title}" has been automatically marked as overdue.',
                    "type": NotificationType.TASK_OVERDUE,
                    "related_task_id": task.task_id,
                    "metadata": {"dueDate": task.due_date.isoformat() if task.due_date else None},
                }
                for uid in task.assignee_ids
            )
        logger.info("Overdue sweep: checked=%s marked=%s notifications=%s", len(candidates), marked, sent)
        return OverdueSweepResult(checked=len(candidates), marked=marked, notifications=sent)

    def daily_overdue_summary(self, day: Optional[date] = None) -> OverdueSummary:
        day = day or self._clock().date()
        start = datetime.combine(day, time.min)
        tasks = tuple(self._tasks.list_marked_between(start, start + timedelta(days=1)))
        user_ids = sorted({uid for t in tasks for uid in t.assignee_ids})
        return OverdueSummary(day=day, tasks=tasks, user_ids=tuple(user_ids))

    # --- notifications ------------------------------------------------------------------------

    def notifications(self, *, actor: AuthContext) -> Sequence[Notification]:
        return self._notifications.list_for_user(actor.user_id)

    def unread_count(self, *, actor: AuthContext) -> int:
        return self._notifications.unread_count(actor.user_id)

    def mark_notification_read(self, *, actor: AuthContext, notification_id: int) -> None:
        if not self._notifications.mark_read(int(notification_id), actor.user_id):
            raise NotFoundError("Notification not found")

    def mark_all_notifications_read(self, *, actor: AuthContext) -> int:
        return self._notifications.mark_all_read(actor.user_id)
