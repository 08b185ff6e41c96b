from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.http import error_response, id_list, json_body, ok, optional_int, required_date
from ..common.validators import require_positive_id, require_selection, to_optional_decimal
from ..container import Container
from ..core.exceptions import ValidationError
from .wizard import CommitLog, PayrollPreview, ScopeSelection


def _scope_view(scope: ScopeSelection) -> dict:
    return {
        "start": scope.start,
        "end": scope.end,
        "candidates": [
            {
                "profile_id": c.profile_id,
                "total_hours": c.total_hours,
                "overtime_hours": c.overtime_hours,
                "avg_hourly_rate": c.avg_hourly_rate,
                "working_hour_ids": c.working_hour_ids,
            }
            for c in scope.candidates
        ],
        "selected_ids": scope.selected_ids,
        "overlaps": {pid: [p.id for p in ps] for pid, ps in scope.overlaps.items()},
        "can_advance": scope.can_advance,
    }


def _preview_view(preview: PayrollPreview) -> dict:
    return {
        "start": preview.start,
        "end": preview.end,
        "lines": preview.lines,
        "total_gross": preview.total_gross,
        "total_net": preview.total_net,
    }


def _log_view(log: CommitLog) -> dict:
    return {
        "stage": log.stage,
        "start": log.start,
        "end": log.end,
        "bank_account_id": log.bank_account_id,
        "entries": [
            {"profile_id": e.line.profile_id, "status": e.status, "payroll_id": e.payroll_id, "error": e.error}
            for e in log.entries
        ],
    }


def register(app: Flask, container: Container) -> None:
    wizard = container.payroll_wizard

    def _scope_from(data: dict) -> ScopeSelection:
        return wizard.select_scope(
            start=required_date(data, "start"),
            end=required_date(data, "end"),
            profile_ids=id_list(data.get("profile_ids"), "profile_ids"),
        )

    def _reviewed_lines(data: dict, what: str) -> dict[int, list[int]]:
        """``lines`` echoed back from the preview: employee id -> working-hour ids."""

        lines = data.get("lines") or []
        if not isinstance(lines, list) or not all(isinstance(line, dict) for line in lines):
            raise ValidationError("lines must be a list of preview lines")
        require_selection([line.get("profile_id") for line in lines], what)
        return {
            require_positive_id(line.get("profile_id"), "Employee"): require_selection(
                line.get("working_hour_ids"), "working hour"
            )
            for line in lines
        }

    def _commit_from(data: dict, what: str):
        reviewed = _reviewed_lines(data, what)
        bank_account_id = container.bank_account_service.resolve_payout_account(
            optional_int(data.get("bank_account_id"), "bank_account_id")
        )
        scope = wizard.select_scope(
            start=required_date(data, "start"),
            end=required_date(data, "end"),
            profile_ids=list(reviewed),
        )
        preview = wizard.preview(scope)
        wizard.ensure_unchanged(preview, reviewed)
        log = wizard.commit(preview, bank_account_id=bank_account_id)
        return ok(_log_view(log), status=201 if log.done else 200)

    @app.route("/api/payroll", methods=["GET"], endpoint="api_payroll")
    def api_payroll():
        try:
            limit = optional_int(request.args.get("limit"), "limit") or 200
            return ok(container.payroll_service.list_recent(limit=limit))
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/wizard/scope", methods=["POST"], endpoint="api_payroll_wizard_scope")
    def api_payroll_wizard_scope():
        try:
            return ok(_scope_view(_scope_from(json_body())))
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/wizard/preview", methods=["POST"], endpoint="api_payroll_wizard_preview")
    def api_payroll_wizard_preview():
        try:
            preview = wizard.preview(_scope_from(json_body()))
            return ok(_preview_view(preview))
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/wizard/commit", methods=["POST"], endpoint="api_payroll_wizard_commit")
    def api_payroll_wizard_commit():
        """Commit the reviewed preview.

        The body carries the window plus the preview ``lines`` (profile_id and
        working_hour_ids); a preview that no longer matches is refused.
        """
        try:
            return _commit_from(json_body(), "employee")
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/wizard/retry", methods=["POST"], endpoint="api_payroll_wizard_retry")
    def api_payroll_wizard_retry():
        """Commit again for the lines whose previous sub-commit failed."""
        try:
            return _commit_from(json_body(), "employee to retry")
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/quick-generate", methods=["POST"], endpoint="api_payroll_quick_generate")
    def api_payroll_quick_generate():
        try:
            data = json_body()
            payroll_id = container.payroll_service.quick_generate(
                profile_id=optional_int(data.get("profile_id"), "profile_id") or 0,
                start=parse_optional_date(data.get("start")),
                end=parse_optional_date(data.get("end")),
                deductions=to_optional_decimal(data.get("deductions"), "deductions"),
                bank_account_id=container.bank_account_service.resolve_payout_account(
                    optional_int(data.get("bank_account_id"), "bank_account_id")
                ),
            )
            return ok({"id": payroll_id}, status=201)
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>", methods=["PATCH", "DELETE"], endpoint="api_payroll_item")
    def api_payroll_item(payroll_id: int):
        try:
            if request.method == "DELETE":
                container.payroll_service.delete(payroll_id)
                return ok()

            changes = []
            for field, value in json_body().items():
                if field in ("pay_period_start", "pay_period_end"):
                    value = parse_optional_date(value)
                changes.append((field, value))
            return ok(container.payroll_service.update(payroll_id, changes))
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/approve", methods=["POST"], endpoint="api_payroll_approve")
    def api_payroll_approve(payroll_id: int):
        try:
            container.payroll_service.approve(payroll_id)
            return ok()
        except Exception as e:
            return error_response(e)

    @app.route("/api/payroll/<int:payroll_id>/paid", methods=["POST"], endpoint="api_payroll_paid")
    def api_payroll_paid(payroll_id: int):
        try:
            container.payroll_service.mark_paid(payroll_id)
            return ok()
        except Exception as e:
            return error_response(e)
