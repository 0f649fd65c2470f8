from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_NOTIFY_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import BestEffortDispatcher
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .reports.service import WorkHoursReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    notifications_repo: NotificationRepository
    dispatcher: BestEffortDispatcher

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    notification_service: NotificationService
    work_hours_report_service: WorkHoursReportService


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    notifications_repo: NotificationRepository,
    dispatcher: BestEffortDispatcher,
) -> Container:
    notification_service = NotificationService(notifications_repo, dispatcher)
    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        dispatcher=dispatcher,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        attendance_service=AttendanceService(attendance_repo, notifications=notification_service),
        notification_service=notification_service,
        work_hours_report_service=WorkHoursReportService(attendance_repo),
    )


def build_container(*, db_config: dict, notify_workers: int = DEFAULT_NOTIFY_WORKERS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        dispatcher=BestEffortDispatcher(max_workers=notify_workers),
    )
