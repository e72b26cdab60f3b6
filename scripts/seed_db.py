"""Load database/seed.sql (demo company, departments, menu items) and (re)create the demo logins."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.hr_crm.hr_crm.database.bootstrap import DEMO_PASSWORD, apply_seed_sql, ensure_demo_users
from src.hr_crm.hr_crm.database.connection import DBConfig

DEMO_LOGINS = (
    ("super-admin", "superadmin@platform.example"),
    ("admin", "admin@democorp.example"),
    ("user", "agent@democorp.example"),
)


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(db_config)

    print(f"OK: seeded {DBConfig.from_dict(db_config).describe()}")
    for role, email in DEMO_LOGINS:
        print(f"  {role:<12} {email} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
