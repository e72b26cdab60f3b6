from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, json_list, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    login_required, _ = build_guards(container.auth_service)
    items = container.menu_item_service
    access = container.menu_access_service
    sidebars = container.sidebar_config_service

    # Menu items

    @app.route("/api/menu-items", methods=["GET"], endpoint="menu_items_active")
    @login_required
    def list_menu_items():
        data = items.list_active()
        return success(count=len(data), data=data)

    @app.route("/api/menu-items/all", methods=["GET"], endpoint="menu_items_all")
    @login_required
    def list_all_menu_items():
        data = items.list_all(actor=current_actor())
        return success(count=len(data), data=data)

    @app.route("/api/menu-items", methods=["POST"], endpoint="menu_items_create")
    @login_required
    def create_menu_item():
        item = items.create(actor=current_actor(), data=json_body())
        return success(201, message="Menu item created successfully", data=item)

    @app.route("/api/menu-items/<int:menu_item_id>", methods=["PUT"], endpoint="menu_items_update")
    @login_required
    def update_menu_item(menu_item_id: int):
        item = items.update(actor=current_actor(), menu_item_id=menu_item_id, data=json_body())
        return success(message="Menu item updated successfully", data=item)

    @app.route("/api/menu-items/<int:menu_item_id>", methods=["DELETE"], endpoint="menu_items_delete")
    @login_required
    def delete_menu_item(menu_item_id: int):
        items.delete(actor=current_actor(), menu_item_id=menu_item_id)
        return success(message="Menu item deleted successfully")

    @app.route("/api/menu-items/<int:menu_item_id>/restore", methods=["PUT"], endpoint="menu_items_restore")
    @login_required
    def restore_menu_item(menu_item_id: int):
        item = items.restore(actor=current_actor(), menu_item_id=menu_item_id)
        return success(message="Menu item restored successfully", data=item)

    # Menu access

    @app.route("/api/menu-access", methods=["GET"], endpoint="menu_access_get")
    @login_required
    def get_menu_access():
        row = access.get(
            actor=current_actor(),
            department=request.args.get("department"),
            job_role=request.args.get("jobRole"),
        )
        return success(data=row)

    @app.route("/api/menu-access", methods=["POST"], endpoint="menu_access_save")
    @login_required
    def save_menu_access():
        data = json_body()
        row = access.save(
            actor=current_actor(),
            department=data.get("department"),
            job_role=data.get("job_role"),
            access_items=json_list(data.get("access_items"), "accessItems"),
        )
        return success(message="Menu access saved successfully", data=row)

    @app.route("/api/menu-access/all", methods=["GET"], endpoint="menu_access_all")
    @login_required
    def list_menu_access():
        rows = access.list_all(actor=current_actor())
        return success(count=len(rows), data=rows)

    @app.route("/api/menu-access/<int:access_id>", methods=["PUT"], endpoint="menu_access_update")
    @login_required
    def update_menu_access(access_id: int):
        row = access.update(
            actor=current_actor(),
            access_id=access_id,
            access_items=json_list(json_body().get("access_items"), "accessItems"),
        )
        return success(message="Menu access updated successfully", data=row)

    @app.route("/api/menu-access/<int:access_id>", methods=["DELETE"], endpoint="menu_access_delete")
    @login_required
    def delete_menu_access(access_id: int):
        access.delete(actor=current_actor(), access_id=access_id)
        return success(message="Configuration deleted successfully")

    # Sidebar configs

    @app.route("/api/sidebar", methods=["GET"], endpoint="sidebar_list")
    @login_required
    def list_sidebar_configs():
        configs = sidebars.list(
            actor=current_actor(),
            company_id=request.args.get("companyId"),
            department_id=request.args.get("departmentId"),
            role=request.args.get("role"),
        )
        return success(count=len(configs), data=configs)

    @app.route("/api/sidebar/config", methods=["GET"], endpoint="sidebar_config")
    @login_required
    def get_sidebar_config():
        config = sidebars.get_config(
            actor=current_actor(),
            company_id=request.args.get("companyId"),
            department_id=request.args.get("departmentId"),
            role=request.args.get("role"),
        )
        message = "Configuration found" if config else "No configuration found"
        return success(message=message, data=config)

    @app.route("/api/sidebar/user-config", methods=["GET"], endpoint="sidebar_user_config")
    @login_required
    def get_user_sidebar_config():
        config = sidebars.user_config(actor=current_actor())
        message = "Configuration found" if config else "No custom configuration found"
        return success(message=message, data=config)

    @app.route("/api/sidebar", methods=["POST"], endpoint="sidebar_create")
    @login_required
    def create_sidebar_config():
        data = json_body()
        config = sidebars.create(
            actor=current_actor(),
            company_id=data.get("company_id"),
            department_id=data.get("department_id"),
            role=data.get("role"),
            menu_items=json_list(data.get("menu_items"), "menuItems"),
        )
        return success(201, message="Configuration created successfully", data=config)

    @app.route("/api/sidebar/<int:config_id>", methods=["PUT"], endpoint="sidebar_update")
    @login_required
    def update_sidebar_config(config_id: int):
        config = sidebars.update(
            actor=current_actor(),
            config_id=config_id,
            menu_items=json_list(json_body().get("menu_items"), "menuItems"),
        )
        return success(message="Configuration updated successfully", data=config)

    @app.route("/api/sidebar/<int:config_id>", methods=["DELETE"], endpoint="sidebar_delete")
    @login_required
    def delete_sidebar_config(config_id: int):
        sidebars.delete(actor=current_actor(), config_id=config_id)
        return success(message="Configuration deleted successfully")
