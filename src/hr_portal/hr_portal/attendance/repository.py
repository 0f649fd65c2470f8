from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role, WorkLocation
from .model import AttendanceAdminRow, AttendanceEntry, BreakInterval, StandupRow, WorkHoursRow


class AttendanceRepository(Protocol):
    """Giao diện repository cho bản ghi chấm công.

    Every method is individually atomic. Mutations of an existing entry are
    compare-and-set on `expected_version` and return False when the entry
    changed (or closed) underneath the caller.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceEntry]:
        raise NotImplementedError

    def list_admin_view(self, *, limit: int) -> Sequence[AttendanceAdminRow]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        check_in_time: datetime,
        work_location: WorkLocation,
    ) -> AttendanceEntry:
        """Insert an open entry; raises ActiveSessionExistsError if one is already open."""

        raise NotImplementedError

    def update_breaks(
        self,
        *,
        attendance_id: int,
        breaks: Sequence[BreakInterval],
        expected_version: int,
    ) -> bool:
        raise NotImplementedError

    def close_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        description: Optional[str],
        total_break_seconds: int,
        duration_seconds: int,
        expected_version: int,
    ) -> bool:
        raise NotImplementedError

    def correct_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        total_break_seconds: int,
        duration_seconds: int,
        expected_version: int,
    ) -> bool:
        """Admin-only override of a checkout time."""

        raise NotImplementedError

    def delete_by_id(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def sum_duration_for_user(self, *, user_id: int, start: datetime, end: datetime) -> int:
        """Sum of `duration_seconds` for entries checked in within [start, end); open entries excluded."""

        raise NotImplementedError

    def work_hours_by_user(
        self,
        *,
        start: datetime,
        end: datetime,
        roles: Sequence[Role],
    ) -> Sequence[WorkHoursRow]:
        raise NotImplementedError

    def get_standup_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        roles: Sequence[Role],
    ) -> Sequence[StandupRow]:
        raise NotImplementedError

    def backfill_work_location(self, *, work_location: WorkLocation) -> int:
        """Set a location on open entries that were created without one."""

        raise NotImplementedError
