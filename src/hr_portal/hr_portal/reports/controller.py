from __future__ import annotations

import csv
import io
import logging

from flask import Flask, request

from ..common.datetime_utils import now_utc
from ..common.validators import require_int
from ..common.web import current_role, domain_error, hr_required, login_required, ok, server_error
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    reports = container.work_hours_report_service

    def _year_month():
        now = now_utc()
        year = require_int(request.args.get("year", now.year), "year")
        month = require_int(request.args.get("month", now.month), "month")
        return year, month

    def _write_report_csv(*, report, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=["userId", "name", "totalSeconds", "totalHours"])
        writer.writeheader()
        for row in report.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/hr/work-hours", methods=["GET"], endpoint="api_hr_work_hours")
    @hr_required
    def hr_work_hours():
        try:
            year, month = _year_month()
            report = reports.build_work_hours_report(current_role=current_role(), year=year, month=month)
            return ok(report.rows, year=report.year, month=report.month)
        except DomainError as e:
            return domain_error(e)
        except Exception:
            logger.exception("Work hours report failed")
            return server_error()

    @app.route("/api/hr/work-hours.csv", methods=["GET"], endpoint="api_hr_work_hours_csv")
    @hr_required
    def hr_work_hours_csv():
        try:
            year, month = _year_month()
            report = reports.build_work_hours_report(current_role=current_role(), year=year, month=month)
            return _write_report_csv(report=report, filename=f"work_hours_{year}_{month:02d}.csv")
        except DomainError as e:
            return domain_error(e)
        except Exception:
            logger.exception("Work hours export failed")
            return server_error()

    @app.route("/api/reports/daily-standup", methods=["GET"], endpoint="api_daily_standup")
    @login_required
    def daily_standup():
        try:
            return ok(reports.build_daily_standup())
        except Exception:
            logger.exception("Daily stand-up report failed")
            return server_error()
