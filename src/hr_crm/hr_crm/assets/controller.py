from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, json_list, snake, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, _ = build_guards(container.auth_service)
    service = container.asset_service

    @app.route("/api/assets/stats", methods=["GET"], endpoint="assets_stats")
    @login_required
    def asset_stats():
        stats, categories = service.stats(actor=current_actor())
        return success(stats=stats, category_stats=categories)

    @app.route("/api/assets/bulk-delete", methods=["POST"], endpoint="assets_bulk_delete")
    @login_required
    def bulk_delete_assets():
        deleted = service.bulk_delete(actor=current_actor(), asset_ids=json_list(json_body().get("asset_ids"), "assetIds"))
        return success(message=f"{deleted} assets deleted successfully", deleted=deleted)

    @app.route("/api/assets/assign", methods=["POST"], endpoint="assets_assign")
    @login_required
    def assign_asset():
        data = json_body()
        asset = service.assign(
            actor=current_actor(),
            asset_id=data.get("asset_id"),
            assigned_to=data.get("assigned_to"),
            department_id=data.get("department", data.get("department_id")),
            notes=data.get("notes"),
            expected_return_date=data.get("expected_return_date"),
        )
        return success(message="Asset assigned successfully", asset=asset)

    @app.route("/api/assets/<int:asset_id>/return", methods=["POST"], endpoint="assets_return")
    @login_required
    def return_asset(asset_id: int):
        asset = service.return_asset(actor=current_actor(), asset_id=asset_id)
        return success(message="Asset returned successfully", asset=asset)

    @app.route("/api/assets/<int:asset_id>/maintenance", methods=["POST"], endpoint="assets_schedule_maintenance")
    @login_required
    def schedule_maintenance(asset_id: int):
        asset = service.schedule_maintenance(actor=current_actor(), asset_id=asset_id, data=json_body())
        return success(message="Maintenance scheduled successfully", asset=asset)

    @app.route(
        "/api/assets/<int:asset_id>/maintenance/<int:maintenance_id>/complete",
        methods=["PUT"],
        endpoint="assets_complete_maintenance",
    )
    @login_required
    def complete_maintenance(asset_id: int, maintenance_id: int):
        asset = service.complete_maintenance(
            actor=current_actor(),
            asset_id=asset_id,
            maintenance_id=maintenance_id,
            notes=json_body().get("notes"),
        )
        return success(message="Maintenance completed successfully", asset=asset)

    @app.route("/api/assets/<int:asset_id>/history", methods=["GET"], endpoint="assets_history")
    @login_required
    def asset_history(asset_id: int):
        history, records = service.history(actor=current_actor(), asset_id=asset_id)
        return success(history=history, maintenance_records=records)

    @app.route("/api/assets", methods=["GET"], endpoint="assets_list")
    @login_required
    def list_assets():
        filters = {snake(k): v for k, v in request.args.items()}
        result = service.list(actor=current_actor(), filters=filters)
        return success(assets=result.assets, pagination=result.pagination)

    @app.route("/api/assets", methods=["POST"], endpoint="assets_create")
    @login_required
    def create_asset():
        data = json_body()
        if "department" in data and "department_id" not in data:
            data["department_id"] = data.pop("department")
        asset = service.create(actor=current_actor(), data=data)
        return success(201, message="Asset created successfully", asset=asset)

    @app.route("/api/assets/<int:asset_id>", methods=["GET"], endpoint="assets_get")
    @login_required
    def get_asset(asset_id: int):
        return success(asset=service.get(actor=current_actor(), asset_id=asset_id))

    @app.route("/api/assets/<int:asset_id>", methods=["PUT"], endpoint="assets_update")
    @login_required
    def update_asset(asset_id: int):
        data = json_body()
        if "department" in data and "department_id" not in data:
            data["department_id"] = data.pop("department")
        asset = service.update(actor=current_actor(), asset_id=asset_id, data=data)
        return success(message="Asset updated successfully", asset=asset)

    @app.route("/api/assets/<int:asset_id>", methods=["DELETE"], endpoint="assets_delete")
    @login_required
    def delete_asset(asset_id: int):
        service.delete(actor=current_actor(), asset_id=asset_id)
        return success(message="Asset deleted successfully")
