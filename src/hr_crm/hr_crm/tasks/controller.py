from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, json_list, success
from ..container import Container
from ..core.enums import Role

_TASK_FIELDS = ("title", "description", "due_date", "whatsapp_number", "priority_days", "files", "voice_note")


def _task_data(data: dict) -> dict:
    fields = {k: data[k] for k in _TASK_FIELDS if k in data}
    if "files" in fields:
        fields["files"] = json_list(fields["files"], "files")
    return fields


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.task_service

    @app.route("/api/tasks", methods=["GET"], endpoint="tasks_list")
    @login_required
    def list_tasks():
        grouped = service.list_tasks(actor=current_actor(), status=request.args.get("status"))
        return success(grouped_tasks=grouped)

    @app.route("/api/tasks/my", methods=["GET"], endpoint="tasks_my")
    @login_required
    def my_tasks():
        return success(grouped_tasks=service.my_tasks(actor=current_actor()))

    @app.route("/api/tasks/assigned", methods=["GET"], endpoint="tasks_assigned")
    @login_required
    def assigned_tasks():
        return success(grouped_tasks=service.assigned_tasks(actor=current_actor()))

    @app.route("/api/tasks/create-self", methods=["POST"], endpoint="tasks_create_self")
    @login_required
    def create_self():
        task = service.create_for_self(actor=current_actor(), data=_task_data(json_body()))
        return success(201, message="Task created successfully", task=task)

    @app.route("/api/tasks/create-for-others", methods=["POST"], endpoint="tasks_create_for_others")
    @login_required
    def create_for_others():
        data = json_body()
        task = service.create_for_others(
            actor=current_actor(),
            data=_task_data(data),
            assigned_users=json_list(data.get("assigned_users"), "assignedUsers"),
        )
        return success(201, message="Task created successfully", task=task)

    @app.route("/api/tasks/status-counts", methods=["GET"], endpoint="tasks_status_counts")
    @login_required
    def status_counts():
        return success(counts=service.status_counts(actor=current_actor()))

    @app.route("/api/tasks/overdue", methods=["GET"], endpoint="tasks_overdue")
    @login_required
    def overdue_tasks():
        tasks = service.overdue_tasks(actor=current_actor())
        return success(count=len(tasks), tasks=tasks)

    @app.route("/api/tasks/overdue-check", methods=["GET", "POST"], endpoint="tasks_overdue_check")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def overdue_check():
        result = service.mark_overdue_tasks()
        app.logger.info("Manual overdue check by user %s: %s", current_actor().user_id, result)
        return success(message="Overdue check completed", result=result)

    @app.route("/api/tasks/assignable-users", methods=["GET"], endpoint="tasks_assignable_users")
    @login_required
    def assignable_users():
        users = service.assignable_users(actor=current_actor())
        return success(
            users=[
                {"user_id": u.user_id, "name": u.name, "role": u.role, "job_role": u.job_role}
                for u in users
            ]
        )

    @app.route("/api/tasks/notifications/all", methods=["GET"], endpoint="tasks_notifications")
    @login_required
    def notifications():
        actor = current_actor()
        items = service.notifications(actor=actor)
        return success(notifications=items, unread_count=service.unread_count(actor=actor))

    @app.route(
        "/api/tasks/notifications/<int:notification_id>/read",
        methods=["PATCH"],
        endpoint="tasks_notification_read",
    )
    @login_required
    def mark_notification_read(notification_id: int):
        service.mark_notification_read(actor=current_actor(), notification_id=notification_id)
        return success(message="Notification marked as read")

    @app.route("/api/tasks/notifications/read-all", methods=["PATCH"], endpoint="tasks_notifications_read_all")
    @login_required
    def mark_all_read():
        updated = service.mark_all_notifications_read(actor=current_actor())
        return success(message="All notifications marked as read", updated=updated)

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="tasks_get")
    @login_required
    def get_task(task_id: int):
        return success(task=service.get_task(actor=current_actor(), task_id=task_id))

    @app.route("/api/tasks/<int:task_id>", methods=["PUT"], endpoint="tasks_update")
    @login_required
    def update_task(task_id: int):
        data = json_body()
        task = service.update_task(
            actor=current_actor(),
            task_id=task_id,
            data=_task_data(data),
            assigned_users=json_list(data.get("assigned_users"), "assignedUsers") if "assigned_users" in data else None,
        )
        return success(message="Task updated successfully", task=task)

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="tasks_delete")
    @login_required
    def delete_task(task_id: int):
        service.delete_task(actor=current_actor(), task_id=task_id)
        return success(message="Task deleted successfully")

    @app.route("/api/tasks/<int:task_id>/status", methods=["PATCH"], endpoint="tasks_update_status")
    @login_required
    def update_status(task_id: int):
        task = service.update_status(actor=current_actor(), task_id=task_id, status=json_body().get("status"))
        return success(message="Status updated successfully", task=task)
