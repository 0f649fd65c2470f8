from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import ensure_utc, month_range, now_utc, to_millis
from ..common.validators import parse_work_location
from ..core.constants import DEFAULT_ADMIN_LIST_LIMIT, DEFAULT_HISTORY_LIMIT
from ..core.enums import Role, WorkLocation
from ..core.exceptions import (
    ActiveSessionExistsError,
    AlreadyOnBreakError,
    AuthorizationError,
    BreakInProgressError,
    ConcurrentUpdateError,
    InvalidCorrectionError,
    NoActiveSessionError,
    NotFoundError,
    NotOnBreakError,
    ValidationError,
)
from ..notifications.service import NotificationService
from .durations import net_duration_seconds, total_break_seconds
from .model import AttendanceEntry, AttendanceState, BreakInterval
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_CONCURRENT_MSG = "Your attendance changed in the meantime. Please refresh and try again."


class AttendanceService:
    """Attendance lifecycle: check-in -> (break-in/break-out)* -> checkout.

    The open session is always re-read from the repository; nothing about it is
    cached between calls. Every precondition is checked before the single
    write an operation performs.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        notifications: Optional[NotificationService] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._attendance = attendance
        self._notifications = notifications
        self._history_limit = int(history_limit)

    # ----- self-service -----

    def check_in(self, user_id: int, work_location: Optional[str], *, now: datetime | None = None) -> AttendanceEntry:
        now = to_millis(now or now_utc())
        location = parse_work_location(work_location)

        if self._attendance.get_open_for_user(user_id):
            raise ActiveSessionExistsError("You are already checked in.")

        entry = self._attendance.create_checkin(user_id=user_id, check_in_time=now, work_location=location)
        logger.info("User %s checked in from %s (entry %s)", user_id, location.value, entry.attendance_id)
        return entry

    def break_in(self, user_id: int, *, now: datetime | None = None) -> AttendanceEntry:
        now = to_millis(now or now_utc())

        entry = self._attendance.get_open_for_user(user_id)
        if not entry:
            raise NoActiveSessionError("You must be checked in to start a break.")
        if entry.is_on_break:
            raise AlreadyOnBreakError("You are already on a break.")
        if now <= self._last_event_time(entry):
            raise ValidationError("Break start must be after your last attendance event.")

        breaks = entry.breaks + (BreakInterval(break_in_time=now),)
        updated = self._save_breaks(entry, breaks)
        logger.info("User %s started a break (entry %s)", user_id, entry.attendance_id)
        return updated

    def break_out(self, user_id: int, *, now: datetime | None = None) -> AttendanceEntry:
        now = to_millis(now or now_utc())

        entry = self._attendance.get_open_for_user(user_id)
        if not entry:
            raise NoActiveSessionError("You are not checked in.")
        open_break = entry.open_break
        if open_break is None:
            raise NotOnBreakError("You are not on a break.")
        if now <= open_break.break_in_time:
            raise ValidationError("Break end must be after the break start.")

        breaks = tuple(
            BreakInterval(break_in_time=b.break_in_time, break_out_time=now) if b is open_break else b
            for b in entry.breaks
        )
        updated = self._save_breaks(entry, breaks)
        logger.info("User %s ended a break (entry %s)", user_id, entry.attendance_id)
        return updated

    def check_out(
        self,
        user_id: int,
        description: Optional[str],
        *,
        now: datetime | None = None,
    ) -> AttendanceEntry:
        now = to_millis(now or now_utc())

        entry = self._attendance.get_open_for_user(user_id)
        if not entry:
            raise NoActiveSessionError("No active check-in found.")
        if entry.is_on_break:
            raise BreakInProgressError("You must end your break before checking out.")
        if now <= self._last_event_time(entry):
            raise ValidationError("Checkout must be after your last attendance event.")

        break_seconds = total_break_seconds(entry.breaks)
        duration = net_duration_seconds(entry.check_in_time, now, break_seconds)
        note = (description or "").strip() or None

        ok = self._attendance.close_checkout(
            attendance_id=entry.attendance_id,
            check_out_time=now,
            description=note,
            total_break_seconds=break_seconds,
            duration_seconds=duration,
            expected_version=entry.version,
        )
        if not ok:
            raise ConcurrentUpdateError(_CONCURRENT_MSG)

        logger.info(
            "User %s checked out (entry %s, duration=%ss, breaks=%ss)",
            user_id,
            entry.attendance_id,
            duration,
            break_seconds,
        )
        return self._reload(entry.attendance_id)

    # ----- HR / administrative -----

    def correct_checkout(
        self,
        *,
        current_role: Role,
        attendance_id: int,
        new_checkout_time: datetime,
        author: str = "HR",
    ) -> AttendanceEntry:
        self._require_hr(current_role)
        new_checkout_time = to_millis(new_checkout_time)

        entry = self._attendance.get_by_id(attendance_id)
        if not entry:
            raise NotFoundError("Attendance record not found.")
        if new_checkout_time <= entry.check_in_time:
            raise InvalidCorrectionError("Checkout time must be after the check-in time.")
        if entry.is_on_break:
            raise InvalidCorrectionError("This session has an open break; it must end before checkout can be set.")
        if new_checkout_time <= self._last_event_time(entry):
            raise InvalidCorrectionError("Checkout time must be after the last break ended.")

        # Break total frozen at the original checkout is reused as-is; only a
        # session that was never closed gets its total computed here.
        if entry.total_break_seconds is not None:
            break_seconds = entry.total_break_seconds
        else:
            break_seconds = total_break_seconds(entry.breaks)
        duration = net_duration_seconds(entry.check_in_time, new_checkout_time, break_seconds)

        ok = self._attendance.correct_checkout(
            attendance_id=entry.attendance_id,
            check_out_time=new_checkout_time,
            total_break_seconds=break_seconds,
            duration_seconds=duration,
            expected_version=entry.version,
        )
        if not ok:
            raise ConcurrentUpdateError(_CONCURRENT_MSG)

        logger.info("Checkout of entry %s corrected to %s by %s", attendance_id, new_checkout_time.isoformat(), author)
        self._notify(
            entry.user_id,
            author=author,
            content=f"Your checkout time for {entry.check_in_time:%Y-%m-%d} was adjusted to {new_checkout_time:%H:%M} UTC.",
        )
        return self._reload(entry.attendance_id)

    def delete_entry(self, *, current_role: Role, attendance_id: int, author: str = "HR") -> None:
        self._require_hr(current_role)

        entry = self._attendance.get_by_id(attendance_id)
        if not entry or not self._attendance.delete_by_id(attendance_id):
            raise NotFoundError("Attendance record not found or already deleted.")

        logger.info("Attendance entry %s deleted by %s", attendance_id, author)
        self._notify(
            entry.user_id,
            author=author,
            content=f"Your attendance record for {entry.check_in_time:%Y-%m-%d} was removed.",
        )

    def list_admin_view(self, *, current_role: Role, limit: int = DEFAULT_ADMIN_LIST_LIMIT):
        self._require_hr(current_role)
        return list(self._attendance.list_admin_view(limit=limit))

    def backfill_work_location(self, work_location: WorkLocation = WorkLocation.OFFICE) -> int:
        """Give legacy open sessions without a work location a default one."""
        count = self._attendance.backfill_work_location(work_location=work_location)
        logger.info("Backfilled work location %s on %d open entries", work_location.value, count)
        return count

    # ----- reads -----

    def get_state(self, user_id: int) -> AttendanceState:
        return AttendanceState(
            active=self._attendance.get_open_for_user(user_id),
            history=list(self._attendance.get_recent_for_user(user_id, self._history_limit)),
        )

    def is_on_break(self, user_id: int) -> bool:
        entry = self._attendance.get_open_for_user(user_id)
        return bool(entry and entry.is_on_break)

    def worked_seconds(self, user_id: int, *, start: datetime, end: datetime) -> int:
        return self._attendance.sum_duration_for_user(user_id=user_id, start=ensure_utc(start), end=ensure_utc(end))

    def worked_seconds_for_month(self, user_id: int, *, year: int, month: int) -> int:
        start, end = month_range(year, month)
        return self.worked_seconds(user_id, start=start, end=end)

    # ----- helpers -----

    @staticmethod
    def _require_hr(current_role: Role) -> None:
        if current_role != Role.HR:
            raise AuthorizationError("Forbidden: Access denied.")

    @staticmethod
    def _last_event_time(entry: AttendanceEntry) -> datetime:
        last = entry.check_in_time
        for b in entry.breaks:
            last = max(last, b.break_out_time or b.break_in_time)
        return last

    def _save_breaks(self, entry: AttendanceEntry, breaks: tuple[BreakInterval, ...]) -> AttendanceEntry:
        ok = self._attendance.update_breaks(
            attendance_id=entry.attendance_id,
            breaks=breaks,
            expected_version=entry.version,
        )
        if not ok:
            raise ConcurrentUpdateError(_CONCURRENT_MSG)
        return self._reload(entry.attendance_id)

    def _reload(self, attendance_id: int) -> AttendanceEntry:
        entry = self._attendance.get_by_id(attendance_id)
        if not entry:
            raise NotFoundError("Attendance record not found.")
        return entry

    def _notify(self, user_id: int, *, author: str, content: str) -> None:
        if not self._notifications:
            return
        try:
            self._notifications.notify(recipient_id=user_id, author=author, content=content, link="/dashboard")
        except Exception:
            # Side effects never undo or fail the primary write.
            logger.warning("Could not queue notification for user %s", user_id, exc_info=True)
