"""Example: drive the service layer directly, without Flask.

Prints last week's attendance report for one employee.
"""

import importlib
import sys
from datetime import date, timedelta

from config import get_settings_module

from hr_attendance.container import build_container
from hr_attendance.core.enums import Role
from hr_attendance.users.model import Actor


def main(user_id: int = 2):
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        secret_key=settings.SECRET_KEY,
        storage_root=settings.STORAGE_ROOT,
        storage_url_base=settings.STORAGE_URL_BASE,
        frontend_url=settings.FRONTEND_URL,
    )

    end = date.today()
    start = end - timedelta(days=6)
    report = container.report_service.generate(
        Actor(user_id=user_id, role=Role.EMPLOYEE), start_date=start, end_date=end
    )
    for day in report.daily_records:
        print(day.date, day.day_of_week.value, day.status, day.actual_minutes)
    s = report.summary
    print(f"present={s.present_days} absent={s.absent_days} leave={s.leave_days} rate={s.attendance_rate}%")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 2)
