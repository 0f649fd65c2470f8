from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_range, month_range, now_utc, to_iso
from ..core.constants import SECONDS_PER_HOUR
from ..core.enums import STANDUP_ROLES, WORK_HOURS_ROLES, Role
from ..core.exceptions import AuthorizationError


def seconds_to_hours(seconds: int) -> float:
    return round(int(seconds or 0) / SECONDS_PER_HOUR, 2)


@dataclass(frozen=True)
class WorkHoursReport:
    year: int
    month: int
    rows: list[dict]


class WorkHoursReportService:
    """Aggregations over closed attendance entries.

    Only entries with a computed duration count; open sessions contribute
    nothing until they are checked out.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def build_work_hours_report(self, *, current_role: Role, year: int, month: int) -> WorkHoursReport:
        if current_role != Role.HR:
            raise AuthorizationError("Forbidden: Access denied.")

        start, end = month_range(year, month)
        rows = self._attendance.work_hours_by_user(start=start, end=end, roles=WORK_HOURS_ROLES)
        out_rows = [
            {
                "userId": r.user_id,
                "name": r.name,
                "totalSeconds": r.total_seconds,
                "totalHours": seconds_to_hours(r.total_seconds),
            }
            for r in rows
        ]
        return WorkHoursReport(year=int(year), month=int(month), rows=out_rows)

    def build_daily_standup(self, *, day: Optional[date] = None) -> list[dict]:
        day = day or now_utc().date()
        start, end = day_range(day)
        return [
            {
                "id": r.attendance_id,
                "userId": r.user_id,
                "name": r.name,
                "role": r.role.value,
                "checkOutTime": to_iso(r.check_out_time),
                "description": r.description,
            }
            for r in self._attendance.get_standup_rows(start=start, end=end, roles=STANDUP_ROLES)
        ]
