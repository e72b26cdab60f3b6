from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, _ = build_guards(container.auth_service)
    service = container.client_meeting_service

    def _many(meetings):
        return success(count=len(meetings), data=meetings)

    @app.route("/api/cmeeting", methods=["GET"], endpoint="cmeeting_list")
    @login_required
    def list_meetings():
        return _many(service.list(actor=current_actor()))

    @app.route("/api/cmeeting/create", methods=["POST"], endpoint="cmeeting_create")
    @login_required
    def create_meeting():
        meeting = service.create(actor=current_actor(), data=json_body())
        return success(201, message="Meeting scheduled successfully", data=meeting)

    @app.route("/api/cmeeting/today", methods=["GET"], endpoint="cmeeting_today")
    @login_required
    def today_meetings():
        return _many(service.today(actor=current_actor()))

    @app.route("/api/cmeeting/stats", methods=["GET"], endpoint="cmeeting_stats")
    @login_required
    def meeting_stats():
        return success(data=service.stats(actor=current_actor()))

    @app.route("/api/cmeeting/search", methods=["GET"], endpoint="cmeeting_search")
    @login_required
    def search_meetings():
        args = request.args
        return _many(
            service.search(
                actor=current_actor(),
                q=args.get("q"),
                meeting_type=args.get("type"),
                priority=args.get("priority"),
                on_date=args.get("date"),
            )
        )

    @app.route("/api/cmeeting/status/<status>", methods=["GET"], endpoint="cmeeting_by_status")
    @login_required
    def meetings_by_status(status: str):
        return _many(service.by_status(actor=current_actor(), status=status))

    @app.route("/api/cmeeting/<int:meeting_id>", methods=["GET"], endpoint="cmeeting_get")
    @login_required
    def get_meeting(meeting_id: int):
        return success(data=service.get(actor=current_actor(), meeting_id=meeting_id))

    @app.route("/api/cmeeting/<int:meeting_id>", methods=["PUT"], endpoint="cmeeting_update")
    @login_required
    def update_meeting(meeting_id: int):
        meeting = service.update(actor=current_actor(), meeting_id=meeting_id, data=json_body())
        return success(message="Meeting updated successfully", data=meeting)

    @app.route("/api/cmeeting/<int:meeting_id>/status", methods=["PATCH"], endpoint="cmeeting_update_status")
    @login_required
    def update_meeting_status(meeting_id: int):
        meeting = service.update_status(actor=current_actor(), meeting_id=meeting_id, status=json_body().get("status"))
        return success(message="Meeting status updated", data=meeting)

    @app.route("/api/cmeeting/<int:meeting_id>", methods=["DELETE"], endpoint="cmeeting_delete")
    @login_required
    def delete_meeting(meeting_id: int):
        service.delete(actor=current_actor(), meeting_id=meeting_id)
        return success(message="Meeting deleted successfully")
