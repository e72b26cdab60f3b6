"""Example: call the service layer directly, without Flask.

Controllers stay thin; the business rules live in the services, so scripts
and jobs can reuse them as-is.
"""

import importlib

from config import get_settings_module

from src.hr_crm.hr_crm.common.serializers import to_json
from src.hr_crm.hr_crm.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, jwt_secret=settings.JWT_SECRET)

    result = container.auth_service.login(email="admin@democorp.example", password="Password@123")
    actor = container.auth_service.context_from_token(result.token.token)

    print(to_json(container.dashboard_service.summary(actor=actor, range_="week")))
    print(to_json(container.task_service.status_counts(actor=actor)))


if __name__ == "__main__":
    main()
