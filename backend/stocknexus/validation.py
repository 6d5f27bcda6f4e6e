from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
import json
from .time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .constants import (
    Department,
    GrievancePriority,
    GrievanceStatus,
    ItemStatus,
    Role,
    ServiceNature,
    ServiceStatus,
    ServiceType,
)


# Quantities above this are data-entry mistakes, not lab stock
MAX_QUANTITY = 1_000_000

# Maximum service cost: 99,999,999.99 (Numeric(12, 2))
MAX_COST = Decimal("99999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate registration email)."""


class NotFoundError(ValueError):
    """404-level: the row does not exist or the caller may not see it."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Decimals (money): accept numbers or numeric strings, keep exact
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float, str, Decimal)):
            try:
                dec = Decimal(str(value).strip())
            except InvalidOperation:
                raise ValidationError(f"{col.key} must be a number")
            if not dec.is_finite():
                raise ValidationError(f"{col.key} must be a finite number")
            return dec
        raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date")

    # JSON maps arrive either decoded or as a JSON string (form uploads)
    if isinstance(coltype, JSON):
        if isinstance(value, str):
            if not value.strip():
                return {}
            try:
                return json.loads(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be valid JSON")
        return value

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_choice(patch: dict, key: str, choices) -> None:
    if key in patch and patch[key] is not None and patch[key] not in choices:
        raise ValidationError(f"{key} must be one of: {', '.join(choices)}")


def enforce_rules_inventory_item(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    enforce_choice(patch, "department", Department.ALL)
    enforce_choice(patch, "status", ItemStatus.ALL)

    if "quantity" in patch:
        qty = patch["quantity"]
        if qty < 0:
            raise ValidationError("quantity must be >= 0")
        if qty > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

    if "low_stock_threshold" in patch and patch["low_stock_threshold"] is not None:
        if patch["low_stock_threshold"] < 0:
            raise ValidationError("low_stock_threshold must be >= 0")

    if "specifications" in patch:
        specs = patch["specifications"]
        if specs is None:
            patch["specifications"] = {}
        elif not isinstance(specs, dict):
            raise ValidationError("specifications must be a JSON object")


def enforce_rules_service(patch: dict) -> None:
    enforce_choice(patch, "department", Department.ALL)
    enforce_choice(patch, "service_type", ServiceType.ALL)
    enforce_choice(patch, "nature_of_service", ServiceNature.ALL)
    enforce_choice(patch, "status", ServiceStatus.ALL)

    if "cost" in patch and patch["cost"] is not None:
        cost = patch["cost"]
        if cost < 0:
            raise ValidationError("cost must be >= 0")
        if cost > MAX_COST:
            raise ValidationError(f"cost cannot exceed {MAX_COST}")
        patch["cost"] = cost.quantize(Decimal("0.01"))


def enforce_rules_grievance(patch: dict) -> None:
    enforce_choice(patch, "priority", GrievancePriority.ALL)
    enforce_choice(patch, "status", GrievanceStatus.ALL)


def enforce_rules_registration(patch: dict) -> None:
    enforce_choice(patch, "department", Department.ALL)
    enforce_choice(patch, "requested_role", Role.ALL)

    email = patch.get("email")
    if email is not None:
        email = email.lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("email must be a valid email address")
        patch["email"] = email
