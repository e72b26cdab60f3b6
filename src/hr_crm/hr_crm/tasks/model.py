from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from ..core.enums import OPEN_TASK_STATUSES, NotificationType, TaskStatus


@dataclass(frozen=True)
class AssigneeStatus:
    """Status-by-user entry: one assignee's progress on a task."""

    user_id: int
    status: TaskStatus = TaskStatus.PENDING
    name: Optional[str] = None
    role: Optional[str] = None


@dataclass(frozen=True)
class Task:
    task_id: int
    company_id: Optional[int]
    title: str
    created_by: int
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    whatsapp_number: Optional[str] = None
    priority_days: int = 1
    files: Tuple[str, ...] = ()
    voice_note: Optional[str] = None
    is_active: bool = True
    overall_status: TaskStatus = TaskStatus.PENDING
    marked_overdue_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status_by_user: Tuple[AssigneeStatus, ...] = ()
    created_by_name: Optional[str] = None

    @property
    def assignee_ids(self) -> Tuple[int, ...]:
        return tuple(s.user_id for s in self.status_by_user)

    def status_for(self, user_id: int) -> Optional[TaskStatus]:
        for entry in self.status_by_user:
            if entry.user_id == user_id:
                return entry.status
        return None

    def involves(self, user_id: int) -> bool:
        return self.created_by == user_id or user_id in self.assignee_ids

    def has_open_status(self) -> bool:
        if self.overall_status in OPEN_TASK_STATUSES:
            return True
        return any(s.status in OPEN_TASK_STATUSES for s in self.status_by_user)


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    related_task_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OverdueSweepResult:
    checked: int
    marked: int
    notifications: int


@dataclass(frozen=True)
class OverdueSummary:
    day: date
    tasks: Tuple[Task, ...]
    user_ids: Tuple[int, ...]
