from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.dashboard_service

    @app.route("/api/dashboard/summary", methods=["GET"], endpoint="dashboard_summary")
    @login_required
    def dashboard_summary():
        summary = service.summary(actor=current_actor(), range_=request.args.get("range"))
        return success(data=summary)

    @app.route("/api/dashboard/tasks", methods=["GET"], endpoint="dashboard_tasks")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def dashboard_tasks():
        return success(data=service.task_summary(actor=current_actor()))
