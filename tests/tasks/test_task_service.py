from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from src.hr_crm.hr_crm.auth.context import AuthContext
from src.hr_crm.hr_crm.core.enums import NotificationType, OPEN_TASK_STATUSES, Role, TaskStatus
from src.hr_crm.hr_crm.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_crm.hr_crm.tasks.model import AssigneeStatus, Notification, Task
from src.hr_crm.hr_crm.tasks.service import TaskService, compute_overall_status, group_tasks_by_day
from src.hr_crm.hr_crm.users.model import User

NOW = datetime(2026, 3, 10, 12, 0, 0)


class FakeTasksRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Task] = {}
        self.created_at = NOW

    def get_by_id(self, task_id):
        return self.rows.get(int(task_id))

    def create(self, *, company_id, title, description, due_date, whatsapp_number, priority_days, files,
               voice_note, created_by, assignee_ids):
        tid = self._next_id
        self._next_id += 1
        self.rows[tid] = Task(
            task_id=tid,
            company_id=company_id,
            title=title,
            created_by=created_by,
            description=description,
            due_date=due_date,
            whatsapp_number=whatsapp_number,
            priority_days=priority_days,
            files=tuple(files),
            voice_note=voice_note,
            created_at=self.created_at,
            status_by_user=tuple(AssigneeStatus(user_id=uid) for uid in assignee_ids),
        )
        return tid

    def update(self, task_id, changes):
        if "files" in changes:
            changes = {**changes, "files": tuple(changes["files"])}
        self.rows[task_id] = replace(self.rows[task_id], **changes)
        return True

    def sync_assignees(self, task_id, user_ids):
        task = self.rows[task_id]
        kept = {s.user_id: s for s in task.status_by_user if s.user_id in user_ids}
        entries = tuple(kept.get(uid, AssigneeStatus(user_id=uid)) for uid in user_ids)
        self.rows[task_id] = replace(task, status_by_user=entries)

    def set_assignee_status(self, task_id, user_id, status):
        task = self.rows[task_id]
        entries = tuple(replace(s, status=status) if s.user_id == user_id else s for s in task.status_by_user)
        self.rows[task_id] = replace(task, status_by_user=entries)
        return True

    def set_overall_status(self, task_id, status):
        self.rows[task_id] = replace(self.rows[task_id], overall_status=status)
        return True

    def soft_delete(self, task_id):
        self.rows[task_id] = replace(self.rows[task_id], is_active=False)
        return True

    def _active(self):
        return [t for t in self.rows.values() if t.is_active]

    def list_created_by(self, user_id):
        return [t for t in self._active() if t.created_by == user_id]

    def list_assigned_to(self, user_id):
        return [t for t in self._active() if user_id in t.assignee_ids]

    def list_involving(self, user_id):
        return [t for t in self._active() if t.involves(user_id)]

    def status_counts_for_user(self, user_id):
        counts: dict = {}
        for t in self.list_assigned_to(user_id):
            key = t.status_for(user_id).value
            counts[key] = counts.get(key, 0) + 1
        return counts

    def list_due_unmarked(self, now):
        return [t for t in self._active() if t.due_date and t.due_date < now and t.marked_overdue_at is None]

    def mark_overdue(self, task_id, now):
        task = self.rows[task_id]
        entries = tuple(
            replace(s, status=TaskStatus.OVERDUE) if s.status in OPEN_TASK_STATUSES else s for s in task.status_by_user
        )
        self.rows[task_id] = replace(
            task, status_by_user=entries, overall_status=TaskStatus.OVERDUE, marked_overdue_at=now
        )
        return True

    def list_marked_between(self, start, end):
        return [t for t in self.rows.values() if t.marked_overdue_at and start <= t.marked_overdue_at < end]


class FakeNotificationsRepo:
    def __init__(self):
        self.rows: list[dict] = []

    def create(self, **row):
        self.rows.append(row)
        return len(self.rows)

    def create_many(self, rows):
        rows = list(rows)
        self.rows.extend(rows)
        return len(rows)

    def _own(self, user_id):
        return [(i, r) for i, r in enumerate(self.rows, start=1) if r["user_id"] == user_id]

    def list_for_user(self, user_id):
        return [
            Notification(notification_id=i, user_id=r["user_id"], title=r["title"], message=r["message"],
                         type=r["type"], related_task_id=r.get("related_task_id"), is_read=r.get("is_read", False))
            for i, r in self._own(user_id)
        ]

    def unread_count(self, user_id):
        return sum(1 for _, r in self._own(user_id) if not r.get("is_read"))

    def mark_read(self, notification_id, user_id):
        for i, r in self._own(user_id):
            if i == notification_id:
                r["is_read"] = True
                return True
        return False

    def mark_all_read(self, user_id):
        unread = [r for _, r in self._own(user_id) if not r.get("is_read")]
        for r in unread:
            r["is_read"] = True
        return len(unread)


class FakeUsersRepo:
    def __init__(self, users):
        self.rows = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def list_by_ids(self, user_ids):
        return [self.rows[uid] for uid in user_ids if uid in self.rows]

    def list_by_company(self, company_id, *, department_id=None, active_only=False):
        return [
            u
            for u in self.rows.values()
            if (company_id is None or u.company_id == company_id) and (not active_only or u.is_active)
        ]


def _user(user_id, company_id=1, role=Role.USER, is_active=True):
    return User(
        user_id=user_id,
        name=f"User {user_id}",
        email=f"u{user_id}@x.io",
        password_hash="x",
        role=role,
        company_id=company_id,
        company_code="X",
        is_active=is_active,
    )


def _actor(user_id, role=Role.USER, company_id=1):
    return AuthContext(user_id=user_id, name=f"User {user_id}", email=f"u{user_id}@x.io", role=role,
                       company_id=company_id, company_code="X")


def _service():
    tasks = FakeTasksRepo()
    notes = FakeNotificationsRepo()
    users = FakeUsersRepo([
        _user(1, role=Role.MANAGER),
        _user(2),
        _user(3),
        _user(4, is_active=False),
        _user(5, company_id=2),
    ])
    return TaskService(tasks, notes, users, clock=lambda: NOW), tasks, notes


def _data(**overrides):
    data = {"title": "Call back the client", "due_date": (NOW + timedelta(days=1)).isoformat()}
    data.update(overrides)
    return data


def test_compute_overall_status_rules():
    S = TaskStatus
    assert compute_overall_status([]) == S.PENDING
    assert compute_overall_status([S.PENDING, S.PENDING]) == S.PENDING
    assert compute_overall_status([S.COMPLETED, S.APPROVED]) == S.COMPLETED
    assert compute_overall_status([S.REJECTED, S.COMPLETED]) == S.REJECTED
    assert compute_overall_status([S.REJECTED, S.PENDING]) == S.IN_PROGRESS
    assert compute_overall_status([S.IN_PROGRESS, S.PENDING]) == S.IN_PROGRESS


def test_manager_creates_task_for_others_and_notifies_them():
    svc, _, notes = _service()
    task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=["2", 3, 1])

    assert task.assignee_ids == (2, 3, 1)
    assert task.overall_status == TaskStatus.PENDING
    assert sorted(n["user_id"] for n in notes.rows) == [2, 3]
    assert all(n["type"] == NotificationType.TASK_ASSIGNED for n in notes.rows)


def test_plain_user_can_only_assign_to_self():
    svc, _, _ = _service()
    with pytest.raises(AuthorizationError):
        svc.create_for_others(actor=_actor(2), data=_data(), assigned_users=[3])

    task = svc.create_for_self(actor=_actor(2), data=_data())
    assert task.assignee_ids == (2,)


def test_assignees_must_be_active_members_of_company():
    svc, _, _ = _service()
    with pytest.raises(ValidationError):
        svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[4])
    with pytest.raises(AuthorizationError):
        svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[5])
    with pytest.raises(ValidationError):
        svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[])


def test_task_fields_are_validated():
    svc, _, _ = _service()
    with pytest.raises(ValidationError):
        svc.create_for_self(actor=_actor(2), data=_data(title="ab"))
    with pytest.raises(ValidationError):
        svc.create_for_self(actor=_actor(2), data=_data(due_date=(NOW - timedelta(hours=1)).isoformat()))
    with pytest.raises(ValidationError):
        svc.create_for_self(actor=_actor(2), data=_data(priority_days=31))


def test_update_status_recomputes_overall_and_notifies_creator():
    svc, _, notes = _service()
    task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2, 3])
    notes.rows.clear()

    task = svc.update_status(actor=_actor(2), task_id=task.task_id, status="completed")
    assert task.status_for(2) == TaskStatus.COMPLETED
    assert task.overall_status == TaskStatus.IN_PROGRESS
    assert notes.rows[0]["user_id"] == 1
    assert notes.rows[0]["type"] == NotificationType.TASK_STATUS_UPDATED

    task = svc.update_status(actor=_actor(3), task_id=task.task_id, status="approved")
    assert task.overall_status == TaskStatus.COMPLETED


def test_only_assignees_update_status_and_values_are_checked():
    svc, _, _ = _service()
    task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2])

    with pytest.raises(AuthorizationError):
        svc.update_status(actor=_actor(3), task_id=task.task_id, status="completed")
    with pytest.raises(ValidationError):
        svc.update_status(actor=_actor(2), task_id=task.task_id, status="finished")


def test_update_task_syncs_assignees_and_keeps_existing_progress():
    svc, _, notes = _service()
    task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2, 3])
    svc.update_status(actor=_actor(2), task_id=task.task_id, status="in-progress")
    notes.rows.clear()

    task = svc.update_task(
        actor=_actor(1, Role.MANAGER), task_id=task.task_id, data={"title": "Renamed task"}, assigned_users=[2, 1]
    )
    assert task.title == "Renamed task"
    assert task.assignee_ids == (2, 1)
    assert task.status_for(2) == TaskStatus.IN_PROGRESS
    assert task.overall_status == TaskStatus.IN_PROGRESS
    # the creator added themself, nobody else is new
    assert notes.rows == []


def test_only_creator_updates_or_deletes():
    svc, tasks, _ = _service()
    task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2])

    with pytest.raises(AuthorizationError):
        svc.update_task(actor=_actor(2), task_id=task.task_id, data={"title": "Mine now"})
    with pytest.raises(AuthorizationError):
        svc.delete_task(actor=_actor(2), task_id=task.task_id)

    svc.delete_task(actor=_actor(1, Role.MANAGER), task_id=task.task_id)
    assert tasks.rows[task.task_id].is_active is False
    with pytest.raises(NotFoundError):
        svc.get_task(actor=_actor(1, Role.MANAGER), task_id=task.task_id)


def test_get_task_visibility():
    svc, _, _ = _service()
    task = svc.create_for_self(actor=_actor(2), data=_data())

    assert svc.get_task(actor=_actor(1, Role.MANAGER), task_id=task.task_id).task_id == task.task_id
    with pytest.raises(AuthorizationError):
        svc.get_task(actor=_actor(3), task_id=task.task_id)


def test_overdue_sweep_marks_open_tasks_once_and_notifies_assignees():
    svc, tasks, notes = _service()
    open_task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2, 3])
    done_task = svc.create_for_self(actor=_actor(2), data=_data(title="Already done"))
    svc.update_status(actor=_actor(2), task_id=done_task.task_id, status="completed")
    svc.update_status(actor=_actor(3), task_id=open_task.task_id, status="completed")
    notes.rows.clear()

    later = NOW + timedelta(days=2)
    result = svc.mark_overdue_tasks(later)

    assert result.checked == 2
    assert result.marked == 1
    assert result.notifications == 2
    swept = tasks.rows[open_task.task_id]
    assert swept.overall_status == TaskStatus.OVERDUE
    assert swept.status_for(2) == TaskStatus.OVERDUE
    assert swept.status_for(3) == TaskStatus.COMPLETED
    assert tasks.rows[done_task.task_id].overall_status == TaskStatus.COMPLETED

    again = svc.mark_overdue_tasks(later + timedelta(hours=1))
    assert again.marked == 0

    summary = svc.daily_overdue_summary(later.date())
    assert [t.task_id for t in summary.tasks] == [open_task.task_id]
    assert summary.user_ids == (2, 3)
    assert svc.overdue_tasks(actor=_actor(2))[0].task_id == open_task.task_id


def test_status_counts_cover_every_status():
    svc, _, _ = _service()
    svc.create_for_self(actor=_actor(2), data=_data())
    counts = svc.status_counts(actor=_actor(2))

    assert counts["pending"] == 1
    assert counts["overdue"] == 0
    assert counts["total"] == 1


def test_group_tasks_by_day_newest_first_with_serials():
    t1 = Task(task_id=1, company_id=1, title="A", created_by=1, created_at=datetime(2026, 3, 1, 9))
    t2 = Task(task_id=2, company_id=1, title="B", created_by=1, created_at=datetime(2026, 3, 2, 9))
    t3 = Task(task_id=3, company_id=1, title="C", created_by=1, created_at=datetime(2026, 3, 2, 15))

    grouped = group_tasks_by_day([t1, t2, t3], "mySerialNo")

    assert list(grouped) == ["02-03-2026", "01-03-2026"]
    assert [(t["taskId"], t["mySerialNo"]) for t in grouped["02-03-2026"]] == [(3, 1), (2, 2)]


def test_assignable_users_for_plain_user_is_self():
    svc, _, _ = _service()
    assert [u.user_id for u in svc.assignable_users(actor=_actor(2))] == [2]
    assert {u.user_id for u in svc.assignable_users(actor=_actor(1, Role.MANAGER))} == {1, 2, 3}


def test_single_file_path_from_form_post_is_kept_whole():
    svc, _, _ = _service()
    task = svc.create_for_self(actor=_actor(2), data=_data(files="reports/q1.pdf"))
    assert task.files == ("reports/q1.pdf",)

    task = svc.create_for_self(actor=_actor(2), data=_data(files=["a.pdf", " ", "b.png"]))
    assert task.files == ("a.pdf", "b.png")

    with pytest.raises(ValidationError):
        svc.create_for_self(actor=_actor(2), data=_data(files={"name": "a.pdf"}))


def test_compute_overall_status_stays_overdue_while_an_entry_is_overdue():
    S = TaskStatus
    assert compute_overall_status([S.IN_PROGRESS, S.OVERDUE]) == S.OVERDUE
    assert compute_overall_status([S.REJECTED, S.OVERDUE]) == S.OVERDUE
    assert compute_overall_status([S.COMPLETED, S.COMPLETED]) == S.COMPLETED


def test_status_change_after_sweep_keeps_task_overdue_for_remaining_assignees():
    svc, tasks, _ = _service()
    task = svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2, 3])
    svc.mark_overdue_tasks(NOW + timedelta(days=2))

    task = svc.update_status(actor=_actor(2), task_id=task.task_id, status="in-progress")
    assert task.status_for(3) == TaskStatus.OVERDUE
    assert task.overall_status == TaskStatus.OVERDUE

    svc.update_status(actor=_actor(3), task_id=task.task_id, status="completed")
    assert tasks.rows[task.task_id].overall_status == TaskStatus.IN_PROGRESS


def test_notifications_are_read_per_user():
    svc, _, notes = _service()
    svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(), assigned_users=[2, 3])
    svc.create_for_others(actor=_actor(1, Role.MANAGER), data=_data(title="Second task"), assigned_users=[2])

    mine = svc.notifications(actor=_actor(2))
    assert len(mine) == 2
    assert svc.unread_count(actor=_actor(2)) == 2

    svc.mark_notification_read(actor=_actor(2), notification_id=mine[0].notification_id)
    assert svc.unread_count(actor=_actor(2)) == 1

    other = svc.notifications(actor=_actor(3))[0]
    with pytest.raises(NotFoundError):
        svc.mark_notification_read(actor=_actor(2), notification_id=other.notification_id)
    assert svc.unread_count(actor=_actor(3)) == 1

    assert svc.mark_all_notifications_read(actor=_actor(2)) == 1
    assert svc.unread_count(actor=_actor(2)) == 0
    assert svc.mark_all_notifications_read(actor=_actor(2)) == 0
