from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from . import __version__
from .common.http import failure, success
from .common.logging_config import configure_logging
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .container import Container, build_container
from .assets.controller import register as register_assets
from .attendance.controller import register as register_attendance
from .calls.controller import register as register_calls
from .client_meetings.controller import register as register_client_meetings
from .companies.controller import register as register_companies
from .dashboard.controller import register as register_dashboard
from .departments.controller import register as register_departments
from .followups.controller import register as register_followups
from .job_roles.controller import register as register_job_roles
from .leads.controller import register as register_leads
from .leaves.controller import register as register_leaves
from .menus.controller import register as register_menus
from .tasks.controller import register as register_tasks
from .users.controller import register as register_users

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        payload = dict(exc.extra)
        if exc.error_code:
            payload["error_code"] = exc.error_code
        return failure(exc.message, exc.status_code, **payload)

    @app.errorhandler(404)
    def handle_not_found(_exc):
        return failure("Route not found", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(_exc):
        return failure("Method not allowed", 405)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return failure(exc.description or exc.name, exc.code or 500)
        app.logger.exception("Unhandled error: %s", exc)
        return failure("Internal server error", 500)


def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"], endpoint="health_root")
    @app.route("/api", methods=["GET"], endpoint="health_api")
    def health():
        return success(message="HR/CRM API is running", version=__version__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        app.logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            app.logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_users(db_config)
            app.logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            jwt_expires_days=int(getattr(settings, "JWT_EXPIRES_DAYS", 30)),
            login_max_attempts=int(getattr(settings, "LOGIN_MAX_ATTEMPTS", 5)),
            login_lock_minutes=int(getattr(settings, "LOGIN_LOCK_MINUTES", 15)),
            expose_reset_token=bool(getattr(settings, "EXPOSE_RESET_TOKEN", False)),
        )

    app.extensions["hr_crm.container"] = container
    _register_error_handlers(app)
    _register_health(app)

    register_companies(app, container)
    register_users(app, container)
    register_departments(app, container)
    register_job_roles(app, container)
    register_tasks(app, container)
    register_client_meetings(app, container)
    register_leads(app, container)
    register_followups(app, container)
    register_calls(app, container)
    register_dashboard(app, container)
    register_assets(app, container)
    register_menus(app, container)
    register_attendance(app, container)
    register_leaves(app, container)

    return app
