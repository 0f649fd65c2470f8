from __future__ import annotations

import logging

from flask import Flask, request, session

from ..common.datetime_utils import now_utc, parse_iso_datetime
from ..common.validators import require_int
from ..common.web import (
    current_role,
    current_user_id,
    domain_error,
    fail,
    hr_required,
    json_body,
    login_required,
    ok,
    server_error,
)
from ..container import Container
from ..core.constants import SECONDS_PER_HOUR
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _year_month():
        now = now_utc()
        year = require_int(request.args.get("year", now.year), "year")
        month = require_int(request.args.get("month", now.month), "month")
        return year, month

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="api_checkin")
    @login_required
    def checkin():
        body = json_body()
        try:
            entry = service.check_in(current_user_id(), body.get("workLocation"))
            return ok(entry.as_dict(), status=201, message=f"Checked in from {entry.work_location.value}.")
        except DomainError as e:
            logger.info("Check-in rejected for user %s: %s", session.get("user_id"), e)
            return domain_error(e)
        except Exception:
            logger.exception("Check-in failed")
            return server_error()

    @app.route("/api/attendance/break-in", methods=["POST"], endpoint="api_break_in")
    @login_required
    def break_in():
        try:
            entry = service.break_in(current_user_id())
            return ok(entry.as_dict(), message="Break started.")
        except DomainError as e:
            logger.info("Break-in rejected for user %s: %s", session.get("user_id"), e)
            return domain_error(e)
        except Exception:
            logger.exception("Break-in failed")
            return server_error()

    @app.route("/api/attendance/break-out", methods=["POST"], endpoint="api_break_out")
    @login_required
    def break_out():
        try:
            entry = service.break_out(current_user_id())
            return ok(entry.as_dict(), message="Break ended.")
        except DomainError as e:
            logger.info("Break-out rejected for user %s: %s", session.get("user_id"), e)
            return domain_error(e)
        except Exception:
            logger.exception("Break-out failed")
            return server_error()

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="api_checkout")
    @login_required
    def checkout():
        body = json_body()
        try:
            entry = service.check_out(current_user_id(), body.get("description"))
            return ok(entry.as_dict(), message="Checked out successfully.")
        except DomainError as e:
            logger.info("Checkout rejected for user %s: %s", session.get("user_id"), e)
            return domain_error(e)
        except Exception:
            logger.exception("Checkout failed")
            return server_error()

    @app.route("/api/attendance/status", methods=["GET"], endpoint="api_attendance_status")
    @login_required
    def status():
        try:
            return ok(service.get_state(current_user_id()).as_dict())
        except Exception:
            logger.exception("Attendance status failed")
            return server_error()

    @app.route("/api/dashboard/work-hours", methods=["GET"], endpoint="api_my_work_hours")
    @login_required
    def my_work_hours():
        try:
            year, month = _year_month()
            seconds = service.worked_seconds_for_month(current_user_id(), year=year, month=month)
            return ok({"year": year, "month": month, "totalHours": seconds / SECONDS_PER_HOUR})
        except DomainError as e:
            return domain_error(e)
        except Exception:
            logger.exception("Work hours failed")
            return server_error()

    # ----- HR -----

    @app.route("/api/hr/attendance", methods=["GET"], endpoint="api_hr_attendance")
    @hr_required
    def hr_attendance():
        try:
            rows = service.list_admin_view(current_role=current_role())
            return ok([r.as_dict() for r in rows])
        except DomainError as e:
            return domain_error(e)
        except Exception:
            logger.exception("HR attendance list failed")
            return server_error()

    @app.route("/api/hr/adjust-checkout", methods=["PUT"], endpoint="api_adjust_checkout")
    @hr_required
    def adjust_checkout():
        body = json_body()
        if not body.get("attendanceId") or not body.get("newCheckoutTime"):
            return fail("attendanceId and newCheckoutTime are required.")
        try:
            entry = service.correct_checkout(
                current_role=current_role(),
                attendance_id=require_int(body.get("attendanceId"), "attendanceId"),
                new_checkout_time=parse_iso_datetime(body.get("newCheckoutTime")),
                author=session.get("name") or "HR",
            )
            return ok(entry.as_dict(), message="Checkout time updated.")
        except DomainError as e:
            logger.info("Checkout correction rejected: %s", e)
            return domain_error(e)
        except Exception:
            logger.exception("Checkout correction failed")
            return server_error()

    @app.route("/api/hr/delete-attendance", methods=["DELETE"], endpoint="api_delete_attendance")
    @hr_required
    def delete_attendance():
        body = json_body()
        if not body.get("attendanceId"):
            return fail("attendanceId is required.")
        try:
            service.delete_entry(
                current_role=current_role(),
                attendance_id=require_int(body.get("attendanceId"), "attendanceId"),
                author=session.get("name") or "HR",
            )
            return ok(message="Attendance record deleted.")
        except DomainError as e:
            logger.info("Attendance delete rejected: %s", e)
            return domain_error(e)
        except Exception:
            logger.exception("Attendance delete failed")
            return server_error()
