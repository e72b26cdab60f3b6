"""Dump the HR/CRM database to ``backups/<database>_<timestamp>.sql``.

Requires ``mysqldump`` on PATH.

    python scripts/backup.py
    python scripts/backup.py --out-dir /var/backups/hr-crm --keep 14
"""

from __future__ import annotations

import argparse
import importlib
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.hr_crm.hr_crm.database.connection import DBConfig


def _dump_command(cfg: DBConfig) -> list:
    return [
        "mysqldump",
        f"--host={cfg.host}",
        f"--port={cfg.port}",
        f"--user={cfg.user}",
        f"--password={cfg.password}",
        f"--default-character-set={cfg.charset}",
        "--single-transaction",
        "--routines",
        cfg.database,
    ]


def _prune(out_dir: Path, database: str, keep: int) -> int:
    dumps = sorted(out_dir.glob(f"{database}_*.sql"), reverse=True)
    stale = dumps[keep:] if keep > 0 else []
    for path in stale:
        path.unlink(missing_ok=True)
    return len(stale)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Back up the HR/CRM database with mysqldump")
    parser.add_argument("--out-dir", default=str(REPO_ROOT / "backups"))
    parser.add_argument("--keep", type=int, default=0, help="keep only the newest N dumps (0 keeps all)")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    cfg = DBConfig.from_dict(settings.DB_CONFIG)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / f"{cfg.database}_{datetime.now():%Y%m%d_%H%M%S}.sql"

    print(f"Backing up {cfg.describe()}")
    try:
        with out_file.open("wb") as fh:
            subprocess.run(_dump_command(cfg), stdout=fh, stderr=subprocess.PIPE, check=True)
    except FileNotFoundError:
        out_file.unlink(missing_ok=True)
        print("mysqldump not found on PATH")
        return 1
    except subprocess.CalledProcessError as exc:
        out_file.unlink(missing_ok=True)
        print(f"mysqldump failed: {exc.stderr.decode('utf-8', 'replace').strip()}")
        return 1

    print(f"OK: {out_file}")
    removed = _prune(out_dir, cfg.database, args.keep)
    if removed:
        print(f"Removed {removed} old backup(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
