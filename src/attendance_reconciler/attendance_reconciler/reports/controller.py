from __future__ import annotations

from datetime import date, timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE, DEFAULT_REPORT_DAYS
from ..core.enums import AttendanceStatus
from ..core.exceptions import DomainError
from .model import ReportQuery


def register(app: Flask, container: Container) -> None:
    def _optional_int(name: str):
        value = request.args.get(name)
        return int(value) if value not in (None, "") else None

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_report")
    def api_attendance_report():
        today = date.today()
        try:
            start_s = request.args.get("start_date")
            end_s = request.args.get("end_date")
            end = parse_iso_date(end_s) if end_s else today
            start = parse_iso_date(start_s) if start_s else end - timedelta(days=DEFAULT_REPORT_DAYS - 1)

            status_s = request.args.get("status")
            query = ReportQuery(
                start_date=start,
                end_date=end,
                facility_id=_optional_int("facility_id"),
                employee_id=_optional_int("employee_id"),
                status=AttendanceStatus(status_s) if status_s else None,
                page=_optional_int("page") or 1,
                limit=_optional_int("limit") or DEFAULT_PAGE_SIZE,
            )
        except ValueError:
            return jsonify({"success": False, "message": "Invalid query parameters"}), 400

        try:
            data = container.reporting_aggregator.build(query)
        except DomainError as e:
            return jsonify({"success": False, "message": str(e)}), 400

        return jsonify(
            {
                "success": True,
                "rows": [r.to_dict() for r in data.rows],
                "summary": data.summary,
                "pagination": {"page": data.page, "limit": data.limit, "total": data.total, "pages": data.pages},
            }
        ), 200
