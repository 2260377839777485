from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.exceptions import ConcurrencyConflict, DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _error(message: str, status: int = 400):
        return jsonify({"success": False, "message": message}), status

    def _employee_id(data: dict):
        value = data.get("employee_id", data.get("employeeId"))
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @app.route("/api/breaks/start", methods=["POST"], endpoint="api_break_start")
    def api_break_start():
        data = request.get_json(silent=True) or {}
        employee_id = _employee_id(data)
        break_type = data.get("break_type", data.get("breakType"))
        if employee_id is None or not break_type:
            return _error("employee_id and break_type are required")

        try:
            result = container.break_service.start_break(employee_id, break_type)
        except ConcurrencyConflict as e:
            return _error(str(e), 409)
        except DomainError as e:
            return _error(str(e))
        return jsonify(result.to_dict()), 200

    @app.route("/api/breaks/end", methods=["POST"], endpoint="api_break_end")
    def api_break_end():
        data = request.get_json(silent=True) or {}
        employee_id = _employee_id(data)
        if employee_id is None:
            return _error("employee_id is required")

        try:
            result = container.break_service.end_break(employee_id)
        except ConcurrencyConflict as e:
            return _error(str(e), 409)
        except DomainError as e:
            return _error(str(e))
        return jsonify(result.to_dict()), 200

    @app.route("/api/breaks/status/<int:employee_id>", methods=["GET"], endpoint="api_break_status")
    def api_break_status(employee_id: int):
        try:
            return jsonify(container.break_service.get_break_status(employee_id)), 200
        except DomainError as e:
            return _error(str(e))

    @app.route("/api/breaks/history/<int:employee_id>", methods=["GET"], endpoint="api_break_history")
    def api_break_history(employee_id: int):
        try:
            start_s = request.args.get("start_date") or request.args.get("startDate")
            end_s = request.args.get("end_date") or request.args.get("endDate")
            history = container.break_service.get_break_history(
                employee_id,
                start=parse_iso_date(start_s) if start_s else None,
                end=parse_iso_date(end_s) if end_s else None,
            )
        except ValueError:
            return _error("Dates must be YYYY-MM-DD")
        except DomainError as e:
            return _error(str(e))
        return jsonify({"success": True, "history": history, "totalRecords": len(history)}), 200
