from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.attendance_service

    @app.route("/api/attendance/in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    def clock_in():
        record = service.clock_in(actor=current_actor())
        return success(201, message="Clock-in recorded", attendance=record)

    @app.route("/api/attendance/out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    def clock_out():
        record = service.clock_out(actor=current_actor())
        return success(message="Clock-out recorded", attendance=record)

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today_status():
        return success(today=service.today_status(actor=current_actor()))

    @app.route("/api/attendance/list", methods=["GET"], endpoint="attendance_month")
    @login_required
    def month_list():
        days = service.month_list(
            actor=current_actor(),
            month=request.args.get("month"),
            year=request.args.get("year"),
        )
        return success(count=len(days), attendance=days)

    @app.route("/api/attendance/all", methods=["GET"], endpoint="attendance_company")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def company_records():
        records = service.list_company(actor=current_actor(), day=request.args.get("date"))
        return success(count=len(records), attendance=records)

    @app.route("/api/attendance/user/<int:user_id>", methods=["GET"], endpoint="attendance_by_user")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def user_records(user_id: int):
        records = service.for_user(actor=current_actor(), user_id=user_id, day=request.args.get("date"))
        return success(count=len(records), attendance=records)

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def attendance_stats():
        stats = service.stats(
            actor=current_actor(),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return success(stats=stats)

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def manual_record():
        record, created = service.save_manual(actor=current_actor(), data=json_body())
        if created:
            return success(201, message="Attendance created", attendance=record)
        return success(message="Attendance updated", attendance=record)

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def update_record(attendance_id: int):
        record = service.update(actor=current_actor(), attendance_id=attendance_id, data=json_body())
        return success(message="Attendance updated", attendance=record)

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def delete_record(attendance_id: int):
        service.delete(actor=current_actor(), attendance_id=attendance_id)
        return success(message="Attendance deleted")

    @app.route("/api/attendance/mark-absent", methods=["POST"], endpoint="attendance_mark_absent")
    @roles_required(Role.SUPER_ADMIN)
    def mark_absent():
        result = service.mark_absences(days=request.args.get("days", type=int) or 0)
        return success(message=f"{result.marked} absence(s) recorded", result=result)
