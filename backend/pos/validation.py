from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pos.time_utils import parse_iso_datetime


# Upper bound for prices, costs and amounts; keeps typos like 1e15 out of reports
MAX_AMOUNT = 9_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class FieldSpec:
    kind: str  # "str" | "number" | "int" | "bool" | "date" | "dict"
    nullable: bool = False
    max_length: int | None = None
    min_value: float | None = None
    strip: bool = True


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: what clients are allowed to set, with their type (security boundary)
    - required_on_create: fields required for POST
    """
    fields: dict[str, FieldSpec]
    required_on_create: set[str] = field(default_factory=set)


def _coerce_value(key: str, spec: FieldSpec, value: Any):
    if spec.kind == "int":
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.lstrip("-").isdigit():
                return int(stripped)
        raise ValidationError(f"{key} must be an integer")

    if spec.kind == "number":
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValidationError(f"{key} must be a finite number")
            return value
        if isinstance(value, str):
            stripped = value.strip()
            # Reject scientific notation (e.g., "1e15", "1E10")
            if not stripped or "e" in stripped.lower():
                raise ValidationError(f"{key} must be a number")
            try:
                number = float(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be a number")
            if not math.isfinite(number):
                raise ValidationError(f"{key} must be a finite number")
            return int(number) if number.is_integer() else number
        raise ValidationError(f"{key} must be a number")

    if spec.kind == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            s = value.strip().lower()
            if s in {"true", "1", "yes", "on"}:
                return True
            if s in {"false", "0", "no", "off"}:
                return False
        raise ValidationError(f"{key} must be a boolean")

    if spec.kind == "date":
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be an ISO-8601 date")
        s = value.strip()
        try:
            # Plain date, or a full timestamp; trailing junk is rejected
            if len(s) == 10:
                date.fromisoformat(s)
            elif parse_iso_datetime(s) is None:
                raise ValueError(s)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 date")
        return s

    if spec.kind == "dict":
        # product id -> integer quantity
        if not isinstance(value, dict):
            raise ValidationError(f"{key} must be an object")
        int_spec = FieldSpec("int")
        return {str(k): _coerce_value(f"{key}.{k}", int_spec, v) for k, v in value.items()}

    # Strings
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{key} must be a string")
    text = str(value)
    return text.strip() if spec.strip else text


def validate_payload(*, payload: Any, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against the policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        spec = policy.fields[k]

        if raw is None:
            if not spec.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, spec, raw)

        if spec.kind == "str" and not spec.nullable and val.strip() == "":
            raise ValidationError(f"{k} cannot be blank")
        if spec.kind == "str" and spec.nullable and val == "":
            val = None
        if spec.max_length and isinstance(val, str) and len(val) > spec.max_length:
            raise ValidationError(f"{k} exceeds max length {spec.max_length}")
        if spec.min_value is not None and isinstance(val, (int, float)) and val < spec.min_value:
            raise ValidationError(f"{k} must be >= {spec.min_value:g}")
        if spec.kind == "number" and isinstance(val, (int, float)) and val > MAX_AMOUNT:
            raise ValidationError(f"{k} cannot exceed {MAX_AMOUNT:,.2f}")

        patch[k] = val

    return patch


PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldSpec("str", max_length=255),
        "price": FieldSpec("number", min_value=0),
        "cost": FieldSpec("number", nullable=True, min_value=0),
        "stock": FieldSpec("int"),
        "category": FieldSpec("str", nullable=True, max_length=120),
        "image": FieldSpec("str", nullable=True, max_length=2048),
        "barcode": FieldSpec("str", nullable=True, max_length=64),
    },
    required_on_create={"name", "price"},
)

EXPENSE_POLICY = ModelValidationPolicy(
    fields={
        "category": FieldSpec("str", nullable=True, max_length=120),
        "description": FieldSpec("str", nullable=True, max_length=1000),
        "amount": FieldSpec("number", min_value=0),
        "date": FieldSpec("date", nullable=True),
    },
    required_on_create={"amount"},
)

SETTINGS_POLICY = ModelValidationPolicy(
    fields={
        "currency": FieldSpec("str", max_length=16, strip=False),
        "lowStockThreshold": FieldSpec("number", min_value=0),
        "soundEffectsEnabled": FieldSpec("bool"),
    },
)

USER_POLICY = ModelValidationPolicy(
    fields={
        "username": FieldSpec("str", nullable=True, max_length=120),
        "password": FieldSpec("str", nullable=True, max_length=255),
    },
)

STOCK_ADJUST_POLICY = ModelValidationPolicy(
    fields={
        "new_stock": FieldSpec("int", min_value=0),
        "reason": FieldSpec("str", max_length=255),
    },
    required_on_create={"new_stock", "reason"},
)

CHECKOUT_POLICY = ModelValidationPolicy(
    fields={
        "discount": FieldSpec("number", nullable=True, min_value=0),
        "payment_method": FieldSpec("str", max_length=16),
        "amount_received": FieldSpec("number", nullable=True, min_value=0),
    },
    required_on_create={"payment_method"},
)

AMEND_SALE_POLICY = ModelValidationPolicy(
    fields={
        "quantities": FieldSpec("dict"),
        "reason": FieldSpec("str", nullable=True, max_length=500),
    },
    required_on_create={"quantities"},
)


def parse_date_param(value: str | None, key: str) -> date | None:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"{key} must be YYYY-MM-DD")

