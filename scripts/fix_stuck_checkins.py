"""One-off repair: open sessions created before work location was required.

Sets the work location of every still-open entry that has none, so those
employees can check out again.
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

from config import get_settings_module

from src.hr_portal.hr_portal.common.validators import parse_work_location
from src.hr_portal.hr_portal.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--location", default="Office", help='"Office" (default) or "Home"')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG), notify_workers=1)

    try:
        count = container.attendance_service.backfill_work_location(parse_work_location(args.location))
    finally:
        container.dispatcher.shutdown()
    print(f"OK: Updated {count} open attendance record(s).")


if __name__ == "__main__":
    main()
