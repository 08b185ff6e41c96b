from __future__ import annotations

from datetime import date, timedelta

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date, parse_time
from ..common.http import coerce_fields, error_response, id_list, json_body, ok, optional_int, required_date
from ..common.validators import to_optional_decimal
from ..container import Container
from .model import ShiftTemplate


def register(app: Flask, container: Container) -> None:
    @app.route("/api/rosters", methods=["GET"], endpoint="api_rosters")
    def api_rosters():
        try:
            today = date.today()
            start = parse_optional_date(request.args.get("start")) or today
            end = parse_optional_date(request.args.get("end")) or (start + timedelta(days=7))
            profile_id = optional_int(request.args.get("profile_id"), "profile_id")
            rows = container.roster_service.list_range(start=start, end=end, profile_id=profile_id)
            return ok(rows)
        except Exception as e:
            return error_response(e)

    @app.route("/api/rosters/generate", methods=["POST"], endpoint="api_rosters_generate")
    def api_rosters_generate():
        try:
            data = json_body()
            template = ShiftTemplate(
                profile_ids=tuple(id_list(data.get("profile_ids"), "profile_ids") or ()),
                client_id=optional_int(data.get("client_id"), "client_id") or 0,
                project_id=optional_int(data.get("project_id"), "project_id") or 0,
                start_date=required_date(data, "start_date"),
                end_date=parse_optional_date(data.get("end_date")),
                start_time=parse_time(data.get("start_time")),
                end_time=parse_time(data.get("end_time")),
                hourly_rate=to_optional_decimal(data.get("hourly_rate"), "hourly_rate"),
                expected_profiles=optional_int(data.get("expected_profiles"), "expected_profiles") or 1,
                name=data.get("name") or None,
                notes=data.get("notes") or None,
            )
            ids = container.roster_service.generate(template)
            return ok({"created": len(ids), "ids": ids}, status=201 if ids else 200)
        except Exception as e:
            return error_response(e)

    @app.route("/api/rosters/<int:roster_id>", methods=["PATCH", "DELETE"], endpoint="api_roster_item")
    def api_roster_item(roster_id: int):
        try:
            if request.method == "DELETE":
                container.roster_service.delete(roster_id)
                return ok()

            changes = coerce_fields(
                json_body(),
                dates=("date",),
                times=("start_time", "end_time"),
                decimals=("hourly_rate",),
                ints=("client_id", "project_id", "expected_profiles"),
            )
            return ok(container.roster_service.update(roster_id, changes))
        except Exception as e:
            return error_response(e)
