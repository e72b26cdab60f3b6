from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.job_role_service

    @app.route("/api/job-roles", methods=["POST"], endpoint="job_roles_create")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def create_job_role():
        data = json_body()
        job_role = service.create(
            actor=current_actor(),
            name=data.get("name"),
            department_id=data.get("department_id") or data.get("department"),
            description=data.get("description"),
        )
        return success(201, message="Job role created successfully", job_role=job_role)

    @app.route("/api/job-roles", methods=["GET"], endpoint="job_roles_list")
    @login_required
    def list_job_roles():
        job_roles = service.list(
            actor=current_actor(),
            department_id=request.args.get("department"),
            company_id=request.args.get("company"),
        )
        return success(count=len(job_roles), job_roles=job_roles)

    @app.route("/api/job-roles/department/<int:department_id>", methods=["GET"], endpoint="job_roles_by_department")
    @login_required
    def list_by_department(department_id: int):
        job_roles = service.list_by_department(actor=current_actor(), department_id=department_id)
        return success(count=len(job_roles), job_roles=job_roles)

    @app.route("/api/job-roles/<int:job_role_id>", methods=["GET"], endpoint="job_roles_get")
    @login_required
    def get_job_role(job_role_id: int):
        return success(job_role=service.get(actor=current_actor(), job_role_id=job_role_id))

    @app.route("/api/job-roles/<int:job_role_id>", methods=["PUT"], endpoint="job_roles_update")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def update_job_role(job_role_id: int):
        data = json_body()
        if "department" in data and "department_id" not in data:
            data["department_id"] = data.pop("department")
        if "company" in data and "company_id" not in data:
            data["company_id"] = data.pop("company")
        job_role = service.update(actor=current_actor(), job_role_id=job_role_id, changes=data)
        return success(message="Job role updated successfully", job_role=job_role)

    @app.route("/api/job-roles/<int:job_role_id>", methods=["DELETE"], endpoint="job_roles_delete")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def delete_job_role(job_role_id: int):
        service.delete(actor=current_actor(), job_role_id=job_role_id)
        return success(message="Job role deleted successfully")
