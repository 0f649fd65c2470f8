from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import from_db, to_db
from ..core.enums import Role, WorkLocation
from ..core.exceptions import ActiveSessionExistsError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import AttendanceAdminRow, AttendanceEntry, BreakInterval, StandupRow, WorkHoursRow
from .repository import AttendanceRepository


_ENTRY_COLUMNS = """
    ae.attendance_id, ae.user_id, ae.check_in_time, ae.check_out_time, ae.work_location,
    ae.breaks, ae.total_break_seconds, ae.duration_seconds, ae.description, ae.version
"""


def _row_to_entry(r: Dict[str, Any]) -> AttendanceEntry:
    location = r.get("work_location")
    total_break = r.get("total_break_seconds")
    duration = r.get("duration_seconds")
    return AttendanceEntry(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        check_in_time=from_db(r["check_in_time"]),
        check_out_time=from_db(r.get("check_out_time")),
        work_location=WorkLocation(location) if location else None,
        breaks=tuple(BreakInterval.from_dict(b) for b in load_json(r.get("breaks"), default=[])),
        total_break_seconds=int(total_break) if total_break is not None else None,
        duration_seconds=int(duration) if duration is not None else None,
        description=r.get("description"),
        version=int(r.get("version") or 0),
    )


def _role_params(roles: Sequence[Role]) -> tuple[str, list[str]]:
    placeholders = ",".join(["%s"] * len(roles))
    return placeholders, [r.value for r in roles]


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM attendance_entries ae WHERE ae.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM attendance_entries ae
                WHERE ae.user_id=%s AND ae.check_out_time IS NULL
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM attendance_entries ae
                WHERE ae.user_id=%s
                ORDER BY ae.check_in_time DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_admin_view(self, *, limit: int) -> Sequence[AttendanceAdminRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}, u.name AS user_name, u.role AS user_role
                FROM attendance_entries ae
                JOIN users u ON u.user_id = ae.user_id
                ORDER BY ae.check_in_time DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                AttendanceAdminRow(entry=_row_to_entry(r), user_name=r["user_name"], user_role=Role(r["user_role"]))
                for r in fetchall(cur)
            ]

    def create_checkin(
        self,
        *,
        user_id: int,
        check_in_time: datetime,
        work_location: WorkLocation,
    ) -> AttendanceEntry:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_entries(user_id, check_in_time, work_location, breaks, version)
                    VALUES(%s,%s,%s,%s,0)
                    """,
                    (int(user_id), to_db(check_in_time), work_location.value, dump_json([])),
                )
                attendance_id = int(cur.lastrowid)
        except Exception as e:
            # uq_attendance_open_session: another request opened a session first.
            if is_duplicate_key(e):
                raise ActiveSessionExistsError("You are already checked in.") from e
            raise

        return AttendanceEntry(
            attendance_id=attendance_id,
            user_id=int(user_id),
            check_in_time=check_in_time,
            work_location=work_location,
        )

    def update_breaks(
        self,
        *,
        attendance_id: int,
        breaks: Sequence[BreakInterval],
        expected_version: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_entries
                SET breaks=%s, version=version+1
                WHERE attendance_id=%s AND version=%s AND check_out_time IS NULL
                """,
                (dump_json([b.as_dict() for b in breaks]), int(attendance_id), int(expected_version)),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_entries
                SET check_out_time=%s, description=%s, total_break_seconds=%s,
                    duration_seconds=%s, version=version+1
                WHERE attendance_id=%s AND version=%s AND check_out_time IS NULL
                """,
                (
                    to_db(check_out_time),
                    description,
                    int(total_break_seconds),
                    int(duration_seconds),
                    int(attendance_id),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def correct_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        total_break_seconds: int,
        duration_seconds: int,
        expected_version: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_entries
                SET check_out_time=%s, total_break_seconds=%s, duration_seconds=%s, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                (
                    to_db(check_out_time),
                    int(total_break_seconds),
                    int(duration_seconds),
                    int(attendance_id),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def delete_by_id(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_entries WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def sum_duration_for_user(self, *, user_id: int, start: datetime, end: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(duration_seconds), 0) AS total_seconds
                FROM attendance_entries
                WHERE user_id=%s AND check_in_time >= %s AND check_in_time < %s
                  AND duration_seconds IS NOT NULL
                """,
                (int(user_id), to_db(start), to_db(end)),
            )
            r = fetchone(cur)
            return int(r["total_seconds"]) if r else 0

    def work_hours_by_user(
        self,
        *,
        start: datetime,
        end: datetime,
        roles: Sequence[Role],
    ) -> Sequence[WorkHoursRow]:
        if not roles:
            return []
        placeholders, role_values = _role_params(roles)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.name, SUM(ae.duration_seconds) AS total_seconds
                FROM attendance_entries ae
                JOIN users u ON u.user_id = ae.user_id
                WHERE ae.check_in_time >= %s AND ae.check_in_time < %s
                  AND ae.duration_seconds IS NOT NULL
                  AND u.role IN ({placeholders})
                GROUP BY u.user_id, u.name
                ORDER BY u.name ASC
                """,
                (to_db(start), to_db(end), *role_values),
            )
            return [
                WorkHoursRow(user_id=int(r["user_id"]), name=r["name"], total_seconds=int(r["total_seconds"] or 0))
                for r in fetchall(cur)
            ]

    def get_standup_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        roles: Sequence[Role],
    ) -> Sequence[StandupRow]:
        if not roles:
            return []
        placeholders, role_values = _role_params(roles)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ae.attendance_id, ae.check_out_time, ae.description,
                       u.user_id, u.name, u.role
                FROM attendance_entries ae
                JOIN users u ON u.user_id = ae.user_id
                WHERE ae.check_out_time >= %s AND ae.check_out_time < %s
                  AND ae.description IS NOT NULL AND ae.description <> ''
                  AND u.role IN ({placeholders})
                ORDER BY ae.check_out_time DESC
                """,
                (to_db(start), to_db(end), *role_values),
            )
            return [
                StandupRow(
                    attendance_id=int(r["attendance_id"]),
                    user_id=int(r["user_id"]),
                    name=r["name"],
                    role=Role(r["role"]),
                    check_out_time=from_db(r["check_out_time"]),
                    description=r["description"],
                )
                for r in fetchall(cur)
            ]

    def backfill_work_location(self, *, work_location: WorkLocation) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_entries
                SET work_location=%s, version=version+1
                WHERE check_out_time IS NULL AND work_location IS NULL
                """,
                (work_location.value,),
            )
            count = int(cur.rowcount or 0)
        return count
