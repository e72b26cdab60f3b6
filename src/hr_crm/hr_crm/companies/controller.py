from __future__ import annotations

from flask import Flask

from ..auth.guards import build_guards, current_actor
from ..common.datetime_utils import parse_iso_datetime
from ..common.http import json_body, success
from ..container import Container
from ..core.enums import Role
from ..users.controller import public_user


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)
    service = container.company_service

    @app.route("/api/companies", methods=["POST"], endpoint="companies_register")
    def register_company():
        data = json_body()
        registration = service.register_company(
            company_name=data.get("company_name"),
            company_email=data.get("company_email"),
            company_address=data.get("company_address"),
            company_phone=data.get("company_phone"),
            owner_name=data.get("owner_name"),
            owner_email=data.get("owner_email"),
            owner_password=data.get("owner_password"),
            logo=data.get("logo"),
        )
        app.logger.info("Company registered: %s", registration.company.company_code)
        return success(
            201,
            message="Company registered successfully",
            company=registration.company,
            owner=public_user(registration.owner),
            login_url=registration.company.login_url,
        )

    @app.route("/api/companies", methods=["GET"], endpoint="companies_list")
    @roles_required(Role.SUPER_ADMIN)
    def list_companies():
        companies = service.list_companies(actor=current_actor())
        return success(count=len(companies), companies=companies)

    @app.route("/api/companies/<int:company_id>", methods=["GET"], endpoint="companies_get")
    @login_required
    def get_company(company_id: int):
        return success(company=service.get_company(actor=current_actor(), company_id=company_id))

    @app.route("/api/companies/code/<code>", methods=["GET"], endpoint="companies_by_code")
    @login_required
    def get_by_code(code: str):
        company = service.get_by_code(code)
        current_actor().require_company(company.company_id)
        return success(company=company)

    @app.route("/api/companies/details/<identifier>", methods=["GET"], endpoint="companies_details")
    def company_details(identifier: str):
        company = service.company_details(identifier)
        return success(
            company={
                "company_id": company.company_id,
                "company_name": company.company_name,
                "company_code": company.company_code,
                "logo": company.logo,
                "login_url": company.login_url,
            }
        )

    @app.route("/api/companies/validate/<identifier>", methods=["GET"], endpoint="companies_validate_url")
    def validate_url(identifier: str):
        company = service.validate_url(identifier)
        return success(
            valid=True,
            company_name=company.company_name,
            company_code=company.company_code,
            is_active=company.is_active,
        )

    @app.route("/api/companies/<int:company_id>", methods=["PUT"], endpoint="companies_update")
    @roles_required(Role.ADMIN)
    def update_company(company_id: int):
        changes = json_body()
        if changes.get("subscription_expiry"):
            changes["subscription_expiry"] = parse_iso_datetime(changes["subscription_expiry"], "Subscription expiry")
        company = service.update_company(actor=current_actor(), company_id=company_id, changes=changes)
        return success(message="Company updated successfully", company=company)

    @app.route("/api/companies/<int:company_id>/deactivate", methods=["PATCH"], endpoint="companies_deactivate")
    @roles_required(Role.SUPER_ADMIN)
    def deactivate_company(company_id: int):
        company = service.deactivate_company(actor=current_actor(), company_id=company_id)
        return success(message="Company deactivated successfully", company=company)

    @app.route("/api/companies/<int:company_id>/activate", methods=["PATCH"], endpoint="companies_activate")
    @roles_required(Role.SUPER_ADMIN)
    def activate_company(company_id: int):
        company = service.activate_company(actor=current_actor(), company_id=company_id)
        return success(message="Company activated successfully", company=company)

    @app.route("/api/companies/<int:company_id>", methods=["DELETE"], endpoint="companies_delete")
    @roles_required(Role.SUPER_ADMIN)
    def delete_company(company_id: int):
        service.delete_company(actor=current_actor(), company_id=company_id)
        return success(message="Company deleted permanently")

    @app.route("/api/companies/<int:company_id>/users", methods=["GET"], endpoint="companies_users")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def company_users(company_id: int):
        users = service.company_users(actor=current_actor(), company_id=company_id)
        return success(count=len(users), users=[public_user(u) for u in users])

    @app.route("/api/companies/<int:company_id>/stats", methods=["GET"], endpoint="companies_stats")
    @login_required
    def company_stats(company_id: int):
        return success(stats=service.company_stats(actor=current_actor(), company_id=company_id))
