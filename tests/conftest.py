from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.hr_portal.hr_portal.attendance.model import (
    AttendanceAdminRow,
    AttendanceEntry,
    StandupRow,
    WorkHoursRow,
)
from src.hr_portal.hr_portal.attendance.service import AttendanceService
from src.hr_portal.hr_portal.container import wire
from src.hr_portal.hr_portal.core.enums import Role
from src.hr_portal.hr_portal.core.exceptions import ActiveSessionExistsError
from src.hr_portal.hr_portal.notifications.model import Notification
from src.hr_portal.hr_portal.notifications.service import NotificationService
from src.hr_portal.hr_portal.users.model import User


class InMemoryUsers:
    def __init__(self, users: Optional[list[User]] = None):
        self._by_id: dict[int, User] = {u.user_id: u for u in users or []}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role) -> int:
        user_id = max(self._by_id, default=0) + 1
        self._by_id[user_id] = User(user_id=user_id, name=name, email=email, password_hash=password_hash, role=role)
        return user_id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        user = self._by_id.get(int(user_id))
        if not user:
            return False
        self._by_id[user.user_id] = replace(user, is_active=is_active)
        return True

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda u: u.name)


class InMemoryAttendance:
    """Mirrors the MySQL repository contract, including the version compare-and-set."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.entries: dict[int, AttendanceEntry] = {}
        self._next_id = 1
        self.writes = 0

    def add(self, entry: AttendanceEntry) -> AttendanceEntry:
        entry = replace(entry, attendance_id=self._next_id)
        self.entries[entry.attendance_id] = entry
        self._next_id += 1
        return entry

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceEntry]:
        return self.entries.get(int(attendance_id))

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceEntry]:
        return next((e for e in self.entries.values() if e.user_id == user_id and e.is_open), None)

    def get_recent_for_user(self, user_id: int, limit: int):
        items = [e for e in self.entries.values() if e.user_id == user_id]
        items.sort(key=lambda e: e.check_in_time, reverse=True)
        return items[:limit]

    def list_admin_view(self, *, limit: int):
        rows = []
        for e in sorted(self.entries.values(), key=lambda e: e.check_in_time, reverse=True)[:limit]:
            user = self._users.get_by_id(e.user_id)
            rows.append(AttendanceAdminRow(entry=e, user_name=user.name, user_role=user.role))
        return rows

    def create_checkin(self, *, user_id, check_in_time, work_location) -> AttendanceEntry:
        if self.get_open_for_user(user_id):
            raise ActiveSessionExistsError("You are already checked in.")
        self.writes += 1
        return self.add(
            AttendanceEntry(
                attendance_id=0,
                user_id=user_id,
                check_in_time=check_in_time,
                work_location=work_location,
            )
        )

    def _swap(self, attendance_id: int, expected_version: int, *, require_open: bool, **changes) -> bool:
        current = self.entries.get(int(attendance_id))
        if not current or current.version != expected_version:
            return False
        if require_open and not current.is_open:
            return False
        self.entries[current.attendance_id] = replace(current, version=current.version + 1, **changes)
        self.writes += 1
        return True

    def update_breaks(self, *, attendance_id, breaks, expected_version) -> bool:
        return self._swap(attendance_id, expected_version, require_open=True, breaks=tuple(breaks))

    def close_checkout(
        self,
        *,
        attendance_id,
        check_out_time,
        description,
        total_break_seconds,
        duration_seconds,
        expected_version,
    ) -> bool:
        return self._swap(
            attendance_id,
            expected_version,
            require_open=True,
            check_out_time=check_out_time,
            description=description,
            total_break_seconds=total_break_seconds,
            duration_seconds=duration_seconds,
        )

    def correct_checkout(
        self,
        *,
        attendance_id,
        check_out_time,
        total_break_seconds,
        duration_seconds,
        expected_version,
    ) -> bool:
        return self._swap(
            attendance_id,
            expected_version,
            require_open=False,
            check_out_time=check_out_time,
            total_break_seconds=total_break_seconds,
            duration_seconds=duration_seconds,
        )

    def delete_by_id(self, attendance_id: int) -> bool:
        self.writes += 1
        return self.entries.pop(int(attendance_id), None) is not None

    def _closed_in(self, start, end):
        return [e for e in self.entries.values() if start <= e.check_in_time < end and e.duration_seconds is not None]

    def sum_duration_for_user(self, *, user_id, start, end) -> int:
        return sum(e.duration_seconds for e in self._closed_in(start, end) if e.user_id == user_id)

    def work_hours_by_user(self, *, start, end, roles):
        totals: dict[int, int] = {}
        for e in self._closed_in(start, end):
            if self._users.get_by_id(e.user_id).role in roles:
                totals[e.user_id] = totals.get(e.user_id, 0) + e.duration_seconds
        rows = [
            WorkHoursRow(user_id=uid, name=self._users.get_by_id(uid).name, total_seconds=total)
            for uid, total in totals.items()
        ]
        return sorted(rows, key=lambda r: r.name)

    def get_standup_rows(self, *, start, end, roles):
        rows = []
        for e in self.entries.values():
            user = self._users.get_by_id(e.user_id)
            if e.check_out_time is None or not (start <= e.check_out_time < end):
                continue
            if not e.description or user.role not in roles:
                continue
            rows.append(
                StandupRow(
                    attendance_id=e.attendance_id,
                    user_id=user.user_id,
                    name=user.name,
                    role=user.role,
                    check_out_time=e.check_out_time,
                    description=e.description,
                )
            )
        return sorted(rows, key=lambda r: r.check_out_time, reverse=True)

    def backfill_work_location(self, *, work_location) -> int:
        stuck = [e for e in self.entries.values() if e.is_open and e.work_location is None]
        for e in stuck:
            self.entries[e.attendance_id] = replace(e, work_location=work_location, version=e.version + 1)
        return len(stuck)


class InMemoryNotifications:
    def __init__(self):
        self.items: list[Notification] = []

    def create(self, *, recipient_id, author, content, link, created_at) -> int:
        nid = len(self.items) + 1
        self.items.append(
            Notification(
                notification_id=nid,
                recipient_id=recipient_id,
                author=author,
                content=content,
                link=link,
                created_at=created_at,
            )
        )
        return nid

    def list_for_user(self, user_id, *, limit):
        mine = [n for n in self.items if n.recipient_id == user_id]
        return list(reversed(mine))[:limit]

    def mark_read(self, user_id, notification_ids) -> int:
        count = 0
        for i, n in enumerate(self.items):
            if n.recipient_id == user_id and n.notification_id in notification_ids and not n.is_read:
                self.items[i] = replace(n, is_read=True)
                count += 1
        return count


class InlineDispatcher:
    """Runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.calls = 0

    def submit(self, fn, *args, **kwargs):
        self.calls += 1
        fn(*args, **kwargs)
        return None

    def shutdown(self, *, wait: bool = True) -> None:
        pass


HR = User(1, "Hana HR", "hr@example.com", generate_password_hash("hr123456"), Role.HR)
STAFF = User(2, "Sam Staff", "staff@example.com", generate_password_hash("staff123"), Role.STAFF)
INTERN = User(3, "Ivy Intern", "intern@example.com", generate_password_hash("intern123"), Role.INTERN)
FINANCE = User(4, "Finn Finance", "finance@example.com", generate_password_hash("finance123"), Role.FINANCE)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 1, 15, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers([HR, STAFF, INTERN, FINANCE])


@pytest.fixture
def attendance_repo(users_repo) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo)


@pytest.fixture
def notifications_repo() -> InMemoryNotifications:
    return InMemoryNotifications()


@pytest.fixture
def dispatcher() -> InlineDispatcher:
    return InlineDispatcher()


@pytest.fixture
def notification_service(notifications_repo, dispatcher) -> NotificationService:
    return NotificationService(notifications_repo, dispatcher)


@pytest.fixture
def service(attendance_repo, notification_service) -> AttendanceService:
    return AttendanceService(attendance_repo, notifications=notification_service)


@pytest.fixture
def container(users_repo, attendance_repo, notifications_repo, dispatcher):
    return wire(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        dispatcher=dispatcher,
    )
