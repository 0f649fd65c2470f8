from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import parse_iso_datetime, to_iso
from ..core.enums import Role, WorkLocation


@dataclass(frozen=True)
class BreakInterval:
    """Một lần nghỉ giải lao trong phiên làm việc (nhúng trong bản ghi chấm công)."""

    break_in_time: datetime
    break_out_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.break_out_time is None

    def as_dict(self) -> dict[str, Any]:
        return {
            "breakInTime": to_iso(self.break_in_time),
            "breakOutTime": to_iso(self.break_out_time),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BreakInterval":
        out = data.get("breakOutTime")
        return cls(
            break_in_time=parse_iso_datetime(data["breakInTime"]),
            break_out_time=parse_iso_datetime(out) if out else None,
        )


@dataclass(frozen=True)
class AttendanceEntry:
    """Thực thể miền (domain): một phiên check-in -> checkout của nhân viên.

    `check_out_time` absent means the session is open. `total_break_seconds`
    and `duration_seconds` stay None until checkout.
    """

    attendance_id: int
    user_id: int
    check_in_time: datetime
    work_location: Optional[WorkLocation]
    check_out_time: Optional[datetime] = None
    breaks: tuple[BreakInterval, ...] = field(default_factory=tuple)
    total_break_seconds: Optional[int] = None
    duration_seconds: Optional[int] = None
    description: Optional[str] = None
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    @property
    def open_break(self) -> Optional[BreakInterval]:
        for b in self.breaks:
            if b.is_open:
                return b
        return None

    @property
    def is_on_break(self) -> bool:
        return self.open_break is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.attendance_id,
            "user": self.user_id,
            "checkInTime": to_iso(self.check_in_time),
            "checkOutTime": to_iso(self.check_out_time),
            "workLocation": self.work_location.value if self.work_location else None,
            "breaks": [b.as_dict() for b in self.breaks],
            "totalBreakDuration": self.total_break_seconds,
            "duration": self.duration_seconds,
            "description": self.description,
        }


@dataclass(frozen=True)
class AttendanceAdminRow:
    """Read-model cho màn hình HR: bản ghi kèm thông tin nhân viên."""

    entry: AttendanceEntry
    user_name: str
    user_role: Role

    def as_dict(self) -> dict[str, Any]:
        data = self.entry.as_dict()
        data["user"] = {"id": self.entry.user_id, "name": self.user_name, "role": self.user_role.value}
        return data


@dataclass(frozen=True)
class WorkHoursRow:
    user_id: int
    name: str
    total_seconds: int


@dataclass(frozen=True)
class StandupRow:
    attendance_id: int
    user_id: int
    name: str
    role: Role
    check_out_time: datetime
    description: str


@dataclass(frozen=True)
class AttendanceState:
    """Dashboard snapshot for one employee."""

    active: Optional[AttendanceEntry]
    history: list[AttendanceEntry]

    @property
    def is_on_break(self) -> bool:
        return bool(self.active and self.active.is_on_break)

    def as_dict(self) -> dict[str, Any]:
        return {
            "activeCheckIn": self.active.as_dict() if self.active else None,
            "isOnBreak": self.is_on_break,
            "history": [e.as_dict() for e in self.history],
        }
