from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, Optional, Protocol, Sequence

from ..core.enums import NotificationType, TaskStatus
from .model import Notification, Task


class TaskRepository(Protocol):
    """Tasks together with their status-by-user entries."""

    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, task_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def sync_assignees(self, task_id: int, user_ids: Sequence[int]) -> None:
        """Keep entries of users still assigned, add pending entries, drop the rest."""
        raise NotImplementedError

    def set_assignee_status(self, task_id: int, user_id: int, status: TaskStatus) -> bool:
        raise NotImplementedError

    def set_overall_status(self, task_id: int, status: TaskStatus) -> bool:
        raise NotImplementedError

    def soft_delete(self, task_id: int) -> bool:
        raise NotImplementedError

    def list_created_by(self, user_id: int) -> Sequence[Task]:
        raise NotImplementedError

    def list_assigned_to(self, user_id: int) -> Sequence[Task]:
        raise NotImplementedError

    def list_involving(self, user_id: int) -> Sequence[Task]:
        """Active tasks created by or assigned to ``user_id``."""
        raise NotImplementedError

    def status_counts_for_user(self, user_id: int) -> Dict[str, int]:
        raise NotImplementedError

    def status_counts_for_company(self, company_id: Optional[int]) -> Dict[str, int]:
        """Active tasks per overall status; every company when ``company_id`` is None."""
        raise NotImplementedError

    def list_due_unmarked(self, now: datetime) -> Sequence[Task]:
        """Active tasks due before ``now`` that were never marked overdue."""
        raise NotImplementedError

    def mark_overdue(self, task_id: int, now: datetime) -> bool:
        """Flip open entries and the overall status to overdue in one transaction."""
        raise NotImplementedError

    def list_marked_between(self, start: datetime, end: datetime) -> Sequence[Task]:
        raise NotImplementedError


class NotificationRepository(Protocol):
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
        raise NotImplementedError

    def create_many(self, rows: Iterable[dict]) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[Notification]:
        raise NotImplementedError

    def unread_count(self, user_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: int) -> int:
        raise NotImplementedError
