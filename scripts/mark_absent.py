"""Record ABSENT for active employees who have no attendance on past weekdays.

Meant to be run from cron once a day after the 10:00 cutoff:

    15 10 * * 1-5 cd /srv/hr-crm && python scripts/mark_absent.py

``--days`` widens or narrows the look-back (default 30 days before today).
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
from src.hr_crm.hr_crm.core.constants import ABSENCE_LOOKBACK_DAYS


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--days", type=int, default=ABSENCE_LOOKBACK_DAYS, help="past days to cover")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG), jwt_secret=settings.JWT_SECRET)

    result = container.attendance_service.mark_absences(days=args.days)
    logging.getLogger("mark_absent").info(
        "Swept %s day(s), checked %s user-day(s), recorded %s absence(s)",
        len(result.days),
        result.checked,
        result.marked,
    )


if __name__ == "__main__":
    main()
