from __future__ import annotations

from flask import Flask, request

from ..auth.guards import build_guards, current_actor
from ..common.http import json_body, success
from ..common.serializers import to_json
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..users.model import SECRET_FIELDS
from ..users.service import FORGOT_PASSWORD_MESSAGE


def public_user(user) -> dict:
    return to_json(user, exclude=SECRET_FIELDS)


def register(app: Flask, container: Container) -> None:
    login_required, roles_required = build_guards(container.auth_service)

    def _login_response(result):
        return success(
            message="Login successful",
            token=result.token.token,
            token_type=result.token.token_type,
            expires_at=result.token.expires_at,
            user=public_user(result.user),
            company_details=result.company,
        )

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        result = container.auth_service.login(
            email=data.get("email") or "",
            password=data.get("password") or "",
            company_code=data.get("company_code") or data.get("company_identifier"),
        )
        return _login_response(result)

    @app.route("/api/auth/company/<identifier>/login", methods=["POST"], endpoint="auth_company_login")
    def company_login(identifier: str):
        data = json_body()
        result = container.auth_service.company_login(
            identifier=identifier,
            email=data.get("email") or "",
            password=data.get("password") or "",
        )
        return _login_response(result)

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    @roles_required(Role.ADMIN, Role.HR)
    def register_user():
        data = json_body()
        user = container.user_service.register_user(
            actor=current_actor(),
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            department_id=data.get("department_id") or data.get("department"),
            job_role_id=data.get("job_role_id") or data.get("job_role"),
            role=data.get("role"),
            phone=data.get("phone"),
        )
        return success(201, message="User registered successfully", user=public_user(user))

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        return success(user=public_user(container.auth_service.me(actor=current_actor())))

    @app.route("/api/auth/refresh", methods=["POST"], endpoint="auth_refresh")
    @login_required
    def refresh():
        issued = container.auth_service.refresh(actor=current_actor())
        return success(token=issued.token, token_type=issued.token_type, expires_at=issued.expires_at)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @login_required
    def logout():
        return success(message="Logged out successfully")

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="auth_forgot_password")
    def forgot_password():
        token = container.auth_service.forgot_password(email=json_body().get("email"))
        payload = {"message": FORGOT_PASSWORD_MESSAGE}
        if token and container.expose_reset_token:
            payload["reset_token"] = token
        elif token:
            app.logger.info("Password reset token generated; delivery is handled outside the API")
        return success(**payload)

    @app.route("/api/auth/reset-password", methods=["POST"], endpoint="auth_reset_password")
    def reset_password():
        data = json_body()
        container.auth_service.reset_password(token=data.get("token"), new_password=data.get("password") or data.get("new_password"))
        return success(message="Password reset successful")

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @roles_required(Role.ADMIN, Role.HR, Role.MANAGER)
    def list_users():
        users = container.user_service.list_users(actor=current_actor(), department_id=request.args.get("department"))
        return success(count=len(users), users=[public_user(u) for u in users])

    @app.route("/api/users/<int:user_id>/status", methods=["PATCH"], endpoint="users_set_status")
    @roles_required(Role.ADMIN)
    def set_user_status(user_id: int):
        data = json_body()
        if "is_active" not in data:
            raise ValidationError("isActive is required")
        user = container.user_service.set_user_active(actor=current_actor(), user_id=user_id, is_active=bool(data["is_active"]))
        return success(message="User status updated", user=public_user(user))
