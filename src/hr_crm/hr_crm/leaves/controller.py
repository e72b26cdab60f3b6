from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, snake, success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.leave_service

    @app.route("/api/leaves/apply", methods=["POST"], endpoint="leaves_apply")
    @login_required
    def apply_leave():
        leave = service.apply(actor=current_actor(), data=json_body())
        return success(201, message="Leave application submitted", leave=leave)

    @app.route("/api/leaves/my", methods=["GET"], endpoint="leaves_mine")
    @login_required
    def my_leaves():
        leaves = service.my_leaves(actor=current_actor())
        return success(count=len(leaves), leaves=leaves)

    @app.route("/api/leaves/all", methods=["GET"], endpoint="leaves_company")
    @login_required
    def company_leaves():
        filters = {snake(k): v for k, v in request.args.items()}
        page = service.list_company(actor=current_actor(), filters=filters)
        return success(leaves=page.leaves, pagination=page.pagination)

    @app.route("/api/leaves/stats", methods=["GET"], endpoint="leaves_stats")
    @login_required
    def leave_stats():
        return success(stats=service.stats(actor=current_actor()))

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="leaves_balance")
    @login_required
    def leave_balance():
        return success(balance=service.balance(actor=current_actor(), year=request.args.get("year")))

    @app.route("/api/leaves/status/<int:leave_id>", methods=["PATCH"], endpoint="leaves_update_status")
    @roles_required(Role.ADMIN, Role.HR)
    def update_leave_status(leave_id: int):
        data = json_body()
        leave = service.update_status(
            actor=current_actor(),
            leave_id=leave_id,
            status=data.get("status"),
            remarks=data.get("remarks"),
        )
        return success(message=f"Leave {leave.status.value.lower()}", leave=leave)

    @app.route("/api/leaves/<int:leave_id>/approve", methods=["POST"], endpoint="leaves_approve")
    @roles_required(Role.ADMIN, Role.HR)
    def approve_leave(leave_id: int):
        leave = service.approve(actor=current_actor(), leave_id=leave_id, remarks=json_body().get("remarks"))
        return success(message="Leave approved", leave=leave)

    @app.route("/api/leaves/<int:leave_id>/reject", methods=["POST"], endpoint="leaves_reject")
    @roles_required(Role.ADMIN, Role.HR)
    def reject_leave(leave_id: int):
        leave = service.reject(actor=current_actor(), leave_id=leave_id, remarks=json_body().get("remarks"))
        return success(message="Leave rejected", leave=leave)

    @app.route("/api/leaves/<int:leave_id>/cancel", methods=["POST"], endpoint="leaves_cancel")
    @login_required
    def cancel_leave(leave_id: int):
        leave = service.cancel(actor=current_actor(), leave_id=leave_id)
        return success(message="Leave cancelled", leave=leave)

    @app.route("/api/leaves/<int:leave_id>", methods=["DELETE"], endpoint="leaves_delete")
    @roles_required(Role.ADMIN)
    def delete_leave(leave_id: int):
        service.delete(actor=current_actor(), leave_id=leave_id)
        return success(message="Leave deleted")
