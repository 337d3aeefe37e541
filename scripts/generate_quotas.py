"""Create next year's leave quotas for every employee that has none yet.

Meant to run from cron at the turn of the year; existing rows are left alone.
"""
from __future__ import annotations

import argparse
import importlib
import sys
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from hr_attendance.container import build_container


def main(argv: list[str] | None = None) -> None:
    settings = importlib.import_module(get_settings_module())
    default_quota = int(getattr(settings, "DEFAULT_ANNUAL_QUOTA", 12))

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--year", type=int, default=date.today().year + 1)
    parser.add_argument("--quota", type=int, default=default_quota)
    args = parser.parse_args(argv)

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        secret_key=settings.SECRET_KEY,
        storage_root=settings.STORAGE_ROOT,
        storage_url_base=settings.STORAGE_URL_BASE,
        frontend_url=settings.FRONTEND_URL,
        default_annual_quota=default_quota,
    )
    result = container.leave_quota_ledger.generate_yearly(year=args.year, default_quota=args.quota)
    print(f"OK: {result.year} quotas created={result.created} skipped={result.skipped}")


if __name__ == "__main__":
    main()
