"""Mark overdue tasks once and notify their assignees.

Meant to be run from cron, e.g. every 15 minutes:

    */15 * * * * cd /srv/hr-crm && python scripts/check_overdue.py

``--summary`` prints the tasks marked overdue today instead of sweeping.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.hr_crm.hr_crm.common.logging_config import configure_logging
from src.hr_crm.hr_crm.container import build_container


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--summary", action="store_true", help="print today's overdue summary and exit")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG), jwt_secret=settings.JWT_SECRET)

    if args.summary:
        summary = container.task_service.daily_overdue_summary()
        print(f"{summary.day}: {len(summary.tasks)} task(s) overdue, {len(summary.user_ids)} user(s) affected")
        for task in summary.tasks:
            due = task.due_date.strftime("%Y-%m-%d %H:%M") if task.due_date else "-"
            print(f"  #{task.task_id} {task.title} (due {due})")
        return

    result = container.task_service.mark_overdue_tasks()
    logging.getLogger("check_overdue").info(
        "Checked %s task(s), marked %s overdue, sent %s notification(s)",
        result.checked,
        result.marked,
        result.notifications,
    )


if __name__ == "__main__":
    main()
