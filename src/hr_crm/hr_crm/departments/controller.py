from __future__ import annotations

from flask import Flask

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.department_service

    @app.route("/api/departments", methods=["POST"], endpoint="departments_create")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def create_department():
        data = json_body()
        dept = service.create(actor=current_actor(), name=data.get("name"), description=data.get("description"))
        return success(201, message="Department created successfully", department=dept)

    @app.route("/api/departments", methods=["GET"], endpoint="departments_list")
    @login_required
    def list_departments():
        departments = service.list(actor=current_actor())
        return success(count=len(departments), departments=departments)

    @app.route("/api/departments/<int:department_id>", methods=["GET"], endpoint="departments_get")
    @login_required
    def get_department(department_id: int):
        return success(department=service.get(actor=current_actor(), department_id=department_id))

    @app.route("/api/departments/<int:department_id>", methods=["PUT"], endpoint="departments_update")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def update_department(department_id: int):
        data = json_body()
        dept = service.update(
            actor=current_actor(),
            department_id=department_id,
            name=data.get("name"),
            description=data.get("description"),
        )
        return success(message="Department updated successfully", department=dept)

    @app.route("/api/departments/<int:department_id>", methods=["DELETE"], endpoint="departments_delete")
    @roles_required(Role.ADMIN)
    def delete_department(department_id: int):
        service.delete(actor=current_actor(), department_id=department_id)
        return success(message="Department deleted successfully")
