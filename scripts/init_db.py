"""Create the HR/CRM database and apply database/schema.sql.

    python scripts/init_db.py          # schema only
    python scripts/init_db.py --seed   # schema, seed.sql and the demo accounts
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.hr_crm.hr_crm.database.bootstrap import (
    DEMO_PASSWORD,
    apply_schema,
    apply_seed_sql,
    ensure_demo_users,
    list_tables,
)
from src.hr_crm.hr_crm.database.connection import DBConfig

DATABASE_DIR = REPO_ROOT / "database"

REQUIRED_TABLES = (
    "companies", "departments", "job_roles", "users",
    "tasks", "task_assignees", "notifications",
    "client_meetings", "leads", "lead_notes", "followups", "call_logs",
    "assets", "asset_history", "asset_maintenance",
    "menu_items", "menu_access", "sidebar_configs",
    "attendance", "leaves", "leave_history",
)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", action="store_true", help="also load seed.sql and the demo accounts")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_dict(db_config)

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    missing = sorted(set(REQUIRED_TABLES) - set(list_tables(db_config)))
    if missing:
        print(f"ERROR: schema applied to {target.describe()} but tables are missing: {', '.join(missing)}")
        return 1
    print(f"OK: schema ready on {target.describe()} ({len(REQUIRED_TABLES)} tables)")

    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        print(f"OK: demo data loaded, every demo account uses password {DEMO_PASSWORD}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
