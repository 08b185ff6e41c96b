from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date, parse_time
from ..common.http import coerce_fields, error_response, id_list, json_body, ok, optional_int, required_date
from ..common.validators import to_optional_decimal
from ..container import Container
from ..core.enums import WorkingHourStatus
from ..core.exceptions import ValidationError
from .service import WorkingHourInput


def _parse_datetime(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid datetime: {value!r}")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/working-hours", methods=["GET", "POST"], endpoint="api_working_hours")
    def api_working_hours():
        try:
            if request.method == "GET":
                status_s = request.args.get("status")
                try:
                    status = WorkingHourStatus(status_s) if status_s else None
                except ValueError:
                    raise ValidationError(f"Unknown status: {status_s}")
                rows = container.working_hours_service.list(
                    start=parse_optional_date(request.args.get("start")),
                    end=parse_optional_date(request.args.get("end")),
                    profile_id=optional_int(request.args.get("profile_id"), "profile_id"),
                    status=status,
                )
                return ok(rows)

            data = json_body()
            new_id = container.working_hours_service.create(
                WorkingHourInput(
                    profile_id=optional_int(data.get("profile_id"), "profile_id") or 0,
                    client_id=optional_int(data.get("client_id"), "client_id") or 0,
                    project_id=optional_int(data.get("project_id"), "project_id") or 0,
                    date=required_date(data, "date"),
                    start_time=parse_time(data.get("start_time")),
                    end_time=parse_time(data.get("end_time")),
                    overtime_hours=to_optional_decimal(data.get("overtime_hours"), "overtime_hours") or Decimal("0"),
                    hourly_rate=to_optional_decimal(data.get("hourly_rate"), "hourly_rate"),
                    actual_hours=to_optional_decimal(data.get("actual_hours"), "actual_hours"),
                    sign_in_time=_parse_datetime(data.get("sign_in_time")),
                    sign_out_time=_parse_datetime(data.get("sign_out_time")),
                    notes=data.get("notes"),
                )
            )
            return ok({"id": new_id}, status=201)
        except Exception as e:
            return error_response(e)

    @app.route("/api/working-hours/from-rosters", methods=["POST"], endpoint="api_working_hours_from_rosters")
    def api_working_hours_from_rosters():
        try:
            roster_ids = id_list(json_body().get("roster_ids"), "roster_ids") or []
            ids = container.working_hours_service.derive_from_rosters(roster_ids)
            return ok({"created": len(ids), "ids": ids})
        except Exception as e:
            return error_response(e)

    @app.route("/api/working-hours/<int:working_hour_id>", methods=["PATCH", "DELETE"], endpoint="api_working_hour_item")
    def api_working_hour_item(working_hour_id: int):
        try:
            if request.method == "DELETE":
                container.working_hours_service.delete(working_hour_id)
                return ok()

            changes = coerce_fields(
                json_body(),
                dates=("date",),
                times=("start_time", "end_time"),
                decimals=("actual_hours", "overtime_hours", "hourly_rate"),
                ints=("client_id", "project_id"),
            )
            for key in ("sign_in_time", "sign_out_time"):
                if key in changes:
                    changes[key] = _parse_datetime(changes[key])
            return ok(container.working_hours_service.update(working_hour_id, changes))
        except Exception as e:
            return error_response(e)

    @app.route("/api/working-hours/<int:working_hour_id>/approve", methods=["POST"], endpoint="api_working_hour_approve")
    def api_working_hour_approve(working_hour_id: int):
        try:
            container.working_hours_service.approve(working_hour_id)
            return ok()
        except Exception as e:
            return error_response(e)

    @app.route("/api/working-hours/<int:working_hour_id>/reject", methods=["POST"], endpoint="api_working_hour_reject")
    def api_working_hour_reject(working_hour_id: int):
        try:
            container.working_hours_service.reject(working_hour_id)
            return ok()
        except Exception as e:
            return error_response(e)
