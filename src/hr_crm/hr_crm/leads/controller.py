from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.lead_service

    @app.route("/api/leads", methods=["POST"], endpoint="leads_create")
    @login_required
    def create_lead():
        lead = service.create(actor=current_actor(), data=json_body())
        return success(201, message="Lead created successfully", lead=lead)

    @app.route("/api/leads", methods=["GET"], endpoint="leads_list")
    @login_required
    def list_leads():
        leads = service.list(actor=current_actor(), status=request.args.get("status"))
        return success(count=len(leads), leads=leads)

    @app.route("/api/leads/<int:lead_id>", methods=["GET"], endpoint="leads_get")
    @login_required
    def get_lead(lead_id: int):
        return success(lead=service.get(actor=current_actor(), lead_id=lead_id))

    @app.route("/api/leads/<int:lead_id>", methods=["PUT"], endpoint="leads_update")
    @login_required
    def update_lead(lead_id: int):
        lead = service.update(actor=current_actor(), lead_id=lead_id, data=json_body())
        return success(message="Lead updated successfully", lead=lead)

    @app.route("/api/leads/<int:lead_id>/assign", methods=["PUT"], endpoint="leads_assign")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def assign_lead(lead_id: int):
        lead = service.assign(actor=current_actor(), lead_id=lead_id, user_id=json_body().get("user_id"))
        return success(message="Lead assigned successfully", lead=lead)

    @app.route("/api/leads/<int:lead_id>/notes", methods=["POST"], endpoint="leads_add_note")
    @login_required
    def add_note(lead_id: int):
        lead = service.add_note(actor=current_actor(), lead_id=lead_id, message=json_body().get("message"))
        return success(201, message="Note added", lead=lead)
