from __future__ import annotations

from flask import Flask

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, _ = build_guards(container.auth_service)
    service = container.call_service

    @app.route("/api/calls/start", methods=["POST"], endpoint="calls_start")
    @login_required
    def start_call():
        call = service.start(actor=current_actor(), lead_id=json_body().get("lead_id"))
        return success(201, message="Call started", call=call)

    @app.route("/api/calls/end", methods=["POST"], endpoint="calls_end")
    @login_required
    def end_call():
        data = json_body()
        call = service.end(
            actor=current_actor(),
            call_id=data.get("call_id"),
            status=data.get("status"),
            notes=data.get("notes"),
        )
        return success(message="Call ended", call=call)

    @app.route("/api/calls", methods=["GET"], endpoint="calls_list")
    @login_required
    def list_calls():
        calls = service.list(actor=current_actor())
        return success(count=len(calls), calls=calls)
