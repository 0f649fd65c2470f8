from __future__ import annotations

from datetime import timedelta

import pytest

from src.hr_portal.hr_portal.attendance.model import AttendanceEntry
from src.hr_portal.hr_portal.attendance.service import AttendanceService
from src.hr_portal.hr_portal.common.datetime_utils import rounded_seconds
from src.hr_portal.hr_portal.core.enums import WorkLocation
from src.hr_portal.hr_portal.core.exceptions import (
    ActiveSessionExistsError,
    AlreadyOnBreakError,
    BreakInProgressError,
    ConcurrentUpdateError,
    NoActiveSessionError,
    NotOnBreakError,
    ValidationError,
)

USER = 2


def test_ten_minute_session_with_two_minute_break(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(minutes=3))
    service.break_out(USER, now=fixed_now + timedelta(minutes=5))
    entry = service.check_out(USER, "Wrote tests", now=fixed_now + timedelta(minutes=10))

    assert entry.total_break_seconds == 120
    assert entry.duration_seconds == 480
    assert entry.description == "Wrote tests"
    assert entry.check_out_time == fixed_now + timedelta(minutes=10)
    assert not entry.is_open


def test_nine_hour_day_with_lunch_break(service, fixed_now):
    service.check_in(USER, "Home", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(hours=4))
    service.break_out(USER, now=fixed_now + timedelta(hours=4, minutes=15))
    entry = service.check_out(USER, None, now=fixed_now + timedelta(hours=9))

    assert entry.total_break_seconds == 900
    assert entry.duration_seconds == 31500
    assert entry.duration_seconds + entry.total_break_seconds == 9 * 3600


def test_checkout_without_breaks(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    entry = service.check_out(USER, "", now=fixed_now + timedelta(hours=1))

    assert entry.total_break_seconds == 0
    assert entry.duration_seconds == 3600
    assert entry.description is None


def test_multiple_breaks_are_summed(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    for start in (10, 30):
        service.break_in(USER, now=fixed_now + timedelta(minutes=start))
        service.break_out(USER, now=fixed_now + timedelta(minutes=start + 5))
    entry = service.check_out(USER, "done", now=fixed_now + timedelta(hours=1))

    assert len(entry.breaks) == 2
    assert entry.total_break_seconds == 600
    assert entry.duration_seconds == 3000


def test_check_in_records_location_and_leaves_totals_empty(service, fixed_now):
    entry = service.check_in(USER, "Home", now=fixed_now)

    assert entry.work_location is WorkLocation.HOME
    assert entry.check_in_time == fixed_now
    assert entry.breaks == ()
    assert entry.total_break_seconds is None
    assert entry.duration_seconds is None


@pytest.mark.parametrize("location", [None, "", "office", "Remote"])
def test_check_in_requires_valid_location(service, attendance_repo, fixed_now, location):
    with pytest.raises(ValidationError):
        service.check_in(USER, location, now=fixed_now)
    assert attendance_repo.entries == {}


def test_duplicate_check_in_is_rejected_without_mutation(service, attendance_repo, fixed_now):
    first = service.check_in(USER, "Office", now=fixed_now)
    writes = attendance_repo.writes

    with pytest.raises(ActiveSessionExistsError, match="already checked in"):
        service.check_in(USER, "Home", now=fixed_now + timedelta(minutes=1))

    assert attendance_repo.writes == writes
    assert list(attendance_repo.entries.values()) == [first]


def test_check_in_again_after_checkout(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.check_out(USER, "am", now=fixed_now + timedelta(hours=1))
    second = service.check_in(USER, "Home", now=fixed_now + timedelta(hours=2))

    assert second.is_open
    assert len(service.get_state(USER).history) == 2


def test_repository_race_on_check_in_surfaces_as_duplicate(attendance_repo, fixed_now):
    class StaleReads:
        """Open-session lookup misses the row a concurrent request just wrote."""

        def __getattr__(self, name):
            return getattr(attendance_repo, name)

        def get_open_for_user(self, user_id):
            return None

    service = AttendanceService(StaleReads())
    service.check_in(USER, "Office", now=fixed_now)

    with pytest.raises(ActiveSessionExistsError):
        service.check_in(USER, "Office", now=fixed_now)
    assert len(attendance_repo.entries) == 1


def test_break_in_requires_open_session(service, fixed_now):
    with pytest.raises(NoActiveSessionError, match="must be checked in"):
        service.break_in(USER, now=fixed_now)


def test_break_in_twice_is_rejected(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(minutes=1))

    with pytest.raises(AlreadyOnBreakError):
        service.break_in(USER, now=fixed_now + timedelta(minutes=2))
    assert len(service.get_state(USER).active.breaks) == 1


def test_break_out_requires_open_session(service, fixed_now):
    with pytest.raises(NoActiveSessionError, match="not checked in"):
        service.break_out(USER, now=fixed_now)


def test_break_out_requires_open_break(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    with pytest.raises(NotOnBreakError):
        service.break_out(USER, now=fixed_now + timedelta(minutes=1))


def test_checkout_requires_open_session(service, fixed_now):
    with pytest.raises(NoActiveSessionError, match="No active check-in found."):
        service.check_out(USER, "x", now=fixed_now)


def test_checkout_while_on_break_is_refused_every_time(service, attendance_repo, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(minutes=5))
    before = attendance_repo.get_open_for_user(USER)

    for minutes in (10, 20, 30):
        with pytest.raises(BreakInProgressError, match="end your break"):
            service.check_out(USER, "x", now=fixed_now + timedelta(minutes=minutes))

    assert attendance_repo.get_open_for_user(USER) == before
    assert service.is_on_break(USER)


@pytest.mark.parametrize("offset", [timedelta(0), timedelta(seconds=-1)])
def test_checkout_must_follow_check_in(service, fixed_now, offset):
    service.check_in(USER, "Office", now=fixed_now)
    with pytest.raises(ValidationError):
        service.check_out(USER, "x", now=fixed_now + offset)
    assert service.get_state(USER).active is not None


def test_break_out_must_follow_break_in(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(minutes=5))
    with pytest.raises(ValidationError):
        service.break_out(USER, now=fixed_now + timedelta(minutes=5))


def test_break_in_must_follow_previous_break(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(minutes=5))
    service.break_out(USER, now=fixed_now + timedelta(minutes=10))
    with pytest.raises(ValidationError):
        service.break_in(USER, now=fixed_now + timedelta(minutes=8))


def test_lost_version_race_is_reported(attendance_repo, fixed_now):
    class LosesRace:
        def __getattr__(self, name):
            return getattr(attendance_repo, name)

        def update_breaks(self, **kwargs):
            return False

    service = AttendanceService(LosesRace())
    service.check_in(USER, "Office", now=fixed_now)
    with pytest.raises(ConcurrentUpdateError):
        service.break_in(USER, now=fixed_now + timedelta(minutes=1))
    assert not attendance_repo.get_open_for_user(USER).breaks


def test_at_most_one_open_session_and_break(service, attendance_repo, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    service.break_in(USER, now=fixed_now + timedelta(minutes=1))
    for op in (
        lambda t: service.check_in(USER, "Office", now=t),
        lambda t: service.break_in(USER, now=t),
        lambda t: service.check_out(USER, "x", now=t),
    ):
        with pytest.raises(ValidationError):
            op(fixed_now + timedelta(minutes=2))

    open_entries = [e for e in attendance_repo.entries.values() if e.is_open]
    assert len(open_entries) == 1
    assert sum(1 for b in open_entries[0].breaks if b.is_open) == 1


def test_state_reports_break_and_history(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    assert service.get_state(USER).is_on_break is False

    service.break_in(USER, now=fixed_now + timedelta(minutes=1))
    state = service.get_state(USER)

    assert state.is_on_break is True
    data = state.as_dict()
    assert data["isOnBreak"] is True
    assert data["activeCheckIn"]["workLocation"] == "Office"
    assert data["activeCheckIn"]["breaks"][0]["breakOutTime"] is None
    assert data["activeCheckIn"]["checkInTime"] == "2026-01-15T08:00:00.000Z"


def test_history_is_limited_to_recent_entries(attendance_repo, fixed_now):
    service = AttendanceService(attendance_repo, history_limit=7)
    for day in range(10):
        start = fixed_now + timedelta(days=day)
        service.check_in(USER, "Office", now=start)
        service.check_out(USER, "x", now=start + timedelta(hours=1))

    history = service.get_state(USER).history
    assert len(history) == 7
    assert history[0].check_in_time == fixed_now + timedelta(days=9)


def test_worked_seconds_skips_open_sessions(service, attendance_repo, fixed_now):
    for day, hours in ((0, 1), (1, 2)):
        start = fixed_now + timedelta(days=day)
        service.check_in(USER, "Office", now=start)
        service.check_out(USER, "x", now=start + timedelta(hours=hours))
    service.check_in(USER, "Office", now=fixed_now + timedelta(days=2))

    assert service.worked_seconds_for_month(USER, year=2026, month=1) == 3 * 3600
    assert service.worked_seconds_for_month(USER, year=2026, month=2) == 0


def test_backfill_work_location_only_touches_open_entries(service, attendance_repo, fixed_now):
    legacy = attendance_repo.add(
        AttendanceEntry(attendance_id=0, user_id=USER, check_in_time=fixed_now, work_location=None)
    )
    closed = attendance_repo.add(
        AttendanceEntry(
            attendance_id=0,
            user_id=3,
            check_in_time=fixed_now,
            check_out_time=fixed_now + timedelta(hours=1),
            work_location=None,
            total_break_seconds=0,
            duration_seconds=3600,
        )
    )

    assert service.backfill_work_location() == 1
    assert attendance_repo.get_by_id(legacy.attendance_id).work_location is WorkLocation.OFFICE
    assert attendance_repo.get_by_id(closed.attendance_id).work_location is None
    service.check_out(USER, "unstuck", now=fixed_now + timedelta(hours=2))


def test_sub_millisecond_clock_matches_stored_times(service, fixed_now):
    service.check_in(USER, "Office", now=fixed_now)
    entry = service.check_out(USER, None, now=fixed_now + timedelta(hours=1, microseconds=499_600))

    assert entry.check_out_time.microsecond == 499_000
    assert entry.duration_seconds == 3600
    assert entry.duration_seconds == rounded_seconds(entry.check_in_time, entry.check_out_time) - entry.total_break_seconds
