from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import (
    BusinessRuleError,
    DomainError,
    NotFoundError,
    PayrollOverlapError,
    StoreError,
    ValidationError,
)
from .datetime_utils import parse_optional_date, parse_time
from .validators import to_optional_decimal

logger = logging.getLogger(__name__)


def to_jsonable(value: Any) -> Any:
    """Dataclasses, Decimal, dates and enums into plain JSON values."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return value


def ok(payload: Any = None, status: int = 200):
    body = {"success": True}
    if payload is not None:
        body["data"] = to_jsonable(payload)
    return jsonify(body), status


def error_response(exc: Exception):
    """Map an exception raised by a service into a JSON error response."""

    if isinstance(exc, NotFoundError):
        return jsonify({"success": False, "message": str(exc)}), 404
    if isinstance(exc, PayrollOverlapError):
        return jsonify({"success": False, "message": str(exc), "profile_ids": list(exc.profile_ids)}), 409
    if isinstance(exc, BusinessRuleError):
        return jsonify({"success": False, "message": str(exc)}), 409
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc)}), 400
    if isinstance(exc, StoreError):
        logger.error("store error: %s", exc)
        return jsonify({"success": False, "message": "Operation failed"}), 500
    if isinstance(exc, DomainError):
        return jsonify({"success": False, "message": str(exc)}), 400

    logger.exception("unexpected error on %s %s", request.method, request.path)
    return jsonify({"success": False, "message": "Internal server error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def required_date(data: dict, key: str) -> date:
    value = parse_optional_date(data.get(key))
    if value is None:
        raise ValidationError(f"{key} is required (YYYY-MM-DD)")
    return value


def optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def id_list(value: Any, field_name: str) -> Optional[list[int]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list")
    return [optional_int(v, field_name) for v in value]


def coerce_fields(data: dict, *, dates=(), times=(), decimals=(), ints=()) -> dict:
    """Convert the JSON values of known keys into domain types, leaving others as-is."""

    out = dict(data)
    for key in dates:
        if key in out:
            out[key] = parse_optional_date(out[key])
    for key in times:
        if key in out:
            out[key] = parse_time(out[key])
    for key in decimals:
        if key in out:
            out[key] = to_optional_decimal(out[key], key)
    for key in ints:
        if key in out:
            out[key] = optional_int(out[key], key)
    return out
