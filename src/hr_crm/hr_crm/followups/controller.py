from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, _ = build_guards(container.auth_service)
    service = container.followup_service

    @app.route("/api/followups", methods=["POST"], endpoint="followups_create")
    @login_required
    def create_followup():
        data = json_body()
        followup = service.create(
            actor=current_actor(),
            lead_id=data.get("lead_id"),
            note=data.get("note"),
            date=data.get("date"),
        )
        return success(201, message="Follow-up scheduled", followup=followup)

    @app.route("/api/followups", methods=["GET"], endpoint="followups_list")
    @login_required
    def list_followups():
        followups = service.list(actor=current_actor(), status=request.args.get("status"))
        return success(count=len(followups), followups=followups)

    @app.route("/api/followups/today", methods=["GET"], endpoint="followups_today")
    @login_required
    def today_followups():
        followups = service.today(actor=current_actor())
        return success(count=len(followups), followups=followups)

    @app.route("/api/followups/<int:followup_id>/complete", methods=["PATCH"], endpoint="followups_complete")
    @login_required
    def complete_followup(followup_id: int):
        followup = service.complete(actor=current_actor(), followup_id=followup_id)
        return success(message="Follow-up completed", followup=followup)
