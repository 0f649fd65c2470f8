"""Ví dụ: dùng service layer (không qua Flask).

Controllers are thin; the attendance rules live in the services, so a script
can drive them directly.
"""

import importlib

from config import get_settings_module

from src.hr_portal.hr_portal.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, notify_workers=1)
    try:
        state = container.attendance_service.get_state(user_id=1)
        print(state.as_dict())
        hours = container.attendance_service.worked_seconds_for_month(1, year=2026, month=1) / 3600
        print(f"Worked hours in 2026-01: {hours:.2f}")
    finally:
        container.dispatcher.shutdown()


if __name__ == "__main__":
    main()
