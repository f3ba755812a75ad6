# Overview: Request payload validation: column-driven coercion, line items, document headers.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterable

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeMeta

from .money_utils import ZERO, to_decimal
from .time_utils import parse_iso_date, parse_iso_datetime


# Largest unit price / cost that fits Numeric(12, 2)
MAX_UNIT_AMOUNT = Decimal("9999999999.99")

# Column ceilings: SQL INTEGER, Numeric(9, 4) percentages, Numeric(14, 2) document totals
MAX_QUANTITY = 2**31 - 1
MAX_PERCENT = Decimal("99999.9999")
MAX_DOCUMENT_AMOUNT = Decimal("999999999999.99")

LINE_TEXT_MAX_LENGTH = 255


class ValidationError(ValueError):
    """Bad input; routes answer 400."""


class ConflictError(ValueError):
    """Input clashes with stored data (duplicate barcode, product in use); routes answer 409."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a route accepts for one model.

    writable_fields is the allowlist; anything else in the payload is an
    error. required_on_create applies to full (non-partial) payloads only.
    allow_blank lets "" through for NOT NULL text columns, for descriptive
    document headers where empty means "not filled in".
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    allow_blank: bool = False


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    return {c.key: c for c in model.__mapper__.columns}


def _coerce_int(key: str, value: Any) -> int:
    """Whole numbers only: ints or plain digit strings. Floats, bools, "1e3" and "2.0" are rejected."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in "+-" else text
        if digits.isascii() and digits.isdigit():
            return int(text)
    raise ValidationError(f"{key} must be an integer")


def _as_bool(key: str, value: Any) -> bool:
    return value if isinstance(value, bool) else bool(value)


def _as_decimal(key: str, value: Any) -> Decimal:
    amount = to_decimal(value)
    if amount is None:
        raise ValidationError(f"{key} must be a number")
    return amount


def _as_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _as_date(key: str, value: Any) -> date:
    if isinstance(value, (date, str)):
        try:
            parsed = parse_iso_date(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{key} must be an ISO-8601 date")


def _as_text(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a string")
    return str(value).strip()


# First match wins (Text is a String subclass)
_COERCERS: tuple[tuple[type, Callable[[str, Any], Any]], ...] = (
    (Integer, _coerce_int),
    (Boolean, _as_bool),
    (Numeric, _as_decimal),
    (DateTime, _as_datetime),
    (Date, _as_date),
    (String, _as_text),
)


def _coerce_value(col, value: Any):
    if value is None:
        return None
    for coltype, coerce in _COERCERS:
        if isinstance(col.type, coltype):
            return coerce(col.key, value)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Check a JSON object against the policy and the model's columns and
    return the coerced values, keyed by column.

    partial=False (create) also requires every field in required_on_create.
    Column metadata decides the rest: NOT NULL columns reject null, NOT NULL
    text rejects "" unless the policy allows blanks, and String(n) enforces
    its length.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(set(policy.required_on_create or ()) - payload.keys())
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in cols:
            raise ValidationError(f"Unknown field: {key}")

    cleaned: dict = {}
    for key, raw in payload.items():
        col = cols[key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            cleaned[key] = None
            continue

        value = _coerce_value(col, raw)

        if isinstance(value, str):
            is_text = isinstance(col.type, String)
            if is_text and value == "" and not col.nullable and not policy.allow_blank:
                raise ValidationError(f"{key} cannot be blank")
            max_length = getattr(col.type, "length", None)
            if max_length and len(value) > max_length:
                raise ValidationError(f"{key} exceeds max length {max_length}")

        cleaned[key] = value

    return cleaned


def enforce_rules_product(patch: dict) -> None:
    """Catalog rules beyond column types: amounts within range, no negative stock."""
    for key in ("price", "cost"):
        amount = patch.get(key)
        if amount is None:
            continue
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_UNIT_AMOUNT:
            raise ValidationError(f"{key} cannot exceed {MAX_UNIT_AMOUNT}")

    stock = patch.get("stock")
    if stock is not None and stock < 0:
        raise ValidationError("stock must be >= 0")

    # "" means no barcode; NULLs never collide on the unique index
    if patch.get("barcode") == "":
        patch["barcode"] = None


def parse_document_header(
    *,
    model: DeclarativeMeta,
    payload: dict,
    fields: Iterable[str],
) -> dict:
    """
    Pick the descriptive header fields out of a document payload.

    Missing or null text fields fall back to the column default (""), dates
    may be null. Values are stored verbatim apart from whitespace trimming.
    """
    fields = set(fields)
    cols = _columns_by_key(model)
    subset = {}
    for k in fields:
        if k not in payload:
            continue
        raw = payload[k]
        if raw is None and not cols[k].nullable:
            continue
        if raw == "" and isinstance(cols[k].type, Date):
            raw = None
        subset[k] = raw

    policy = ModelValidationPolicy(writable_fields=fields, allow_blank=True)
    return validate_payload(model=model, payload=subset, policy=policy, partial=True)


# =============================================================================
# Line items
# =============================================================================

@dataclass(frozen=True)
class LineItemInput:
    """A validated line item, before it is resolved against the catalog."""
    product_id: int
    quantity: int
    # Caller's unit price / rate override; None means "use the catalog value"
    unit_amount: Decimal | None = None
    # Per-line percentage discount (purchase order form only)
    discount: Decimal = ZERO
    description: str = ""
    hsn_code: str = ""
    per: str = ""


def _line_text(idx: int, item: dict, key: str) -> str:
    raw = item.get(key)
    if raw is None:
        return ""
    if isinstance(raw, (dict, list)):
        raise ValidationError(f"items[{idx}].{key} must be a string")
    text = str(raw).strip()
    if len(text) > LINE_TEXT_MAX_LENGTH:
        raise ValidationError(f"items[{idx}].{key} exceeds max length {LINE_TEXT_MAX_LENGTH}")
    return text


def parse_line_items(
    raw: Any,
    *,
    price_field: str | None = None,
    allow_line_discount: bool = False,
) -> list[LineItemInput]:
    """
    Validate the `items` array of a document payload.

    price_field names the optional per-line unit amount override ("price"
    for invoices, "rate" for the purchase order form); None ignores any
    override. A falsy override (missing, null, "", 0) means the catalog
    value is used.

    Raises ValidationError before any database access.
    """
    if raw is None:
        raise ValidationError("items is required")
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")
    if not raw:
        raise ValidationError("At least one item is required")

    lines: list[LineItemInput] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")

        if item.get("product_id") is None:
            raise ValidationError(f"items[{idx}].product_id is required")
        product_id = _coerce_int(f"items[{idx}].product_id", item["product_id"])
        if product_id < 1:
            raise ValidationError(f"items[{idx}].product_id must be a positive integer")

        if item.get("quantity") is None:
            raise ValidationError(f"items[{idx}].quantity is required")
        quantity = _coerce_int(f"items[{idx}].quantity", item["quantity"])
        if quantity < 1:
            raise ValidationError(f"items[{idx}].quantity must be at least 1")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"items[{idx}].quantity cannot exceed {MAX_QUANTITY}")

        unit_amount = None
        if price_field:
            raw_amount = item.get(price_field)
            if raw_amount not in (None, "") and not isinstance(raw_amount, bool):
                unit_amount = to_decimal(raw_amount)
                if unit_amount is None:
                    raise ValidationError(f"items[{idx}].{price_field} must be a number")
                if unit_amount < 0:
                    raise ValidationError(f"items[{idx}].{price_field} must be >= 0")
                if unit_amount > MAX_UNIT_AMOUNT:
                    raise ValidationError(f"items[{idx}].{price_field} cannot exceed {MAX_UNIT_AMOUNT}")
                if unit_amount == 0:
                    unit_amount = None

        discount = ZERO
        if allow_line_discount:
            # Non-numeric discount counts as no discount, like the tax rates
            discount = to_decimal(item.get("discount")) or ZERO
            if abs(discount) > MAX_PERCENT:
                raise ValidationError(f"items[{idx}].discount cannot exceed {MAX_PERCENT}")

        lines.append(
            LineItemInput(
                product_id=product_id,
                quantity=quantity,
                unit_amount=unit_amount,
                discount=discount,
                description=_line_text(idx, item, "description"),
                hsn_code=_line_text(idx, item, "hsn_code"),
                per=_line_text(idx, item, "per"),
            )
        )

    return lines


def parse_adjusted_total(raw: Any) -> Decimal | None:
    """
    Caller-supplied net amount override.

    None, "" and 0 mean "no override". Anything else must be a non-negative
    number with at most two decimal places, and is stored exactly.
    """
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    value = to_decimal(raw)
    if value is None:
        raise ValidationError("adjusted_total must be a number")
    if value < 0:
        raise ValidationError("adjusted_total must be >= 0")
    if value > MAX_DOCUMENT_AMOUNT:
        raise ValidationError(f"adjusted_total cannot exceed {MAX_DOCUMENT_AMOUNT}")
    if value != value.quantize(Decimal("0.01")):
        raise ValidationError("adjusted_total cannot have more than 2 decimal places")
    if value == 0:
        return None
    return value


def parse_status(raw: Any, allowed: Iterable[str]) -> str:
    allowed = tuple(allowed)
    if not isinstance(raw, str) or raw.strip().lower() not in allowed:
        raise ValidationError(f"status must be one of: {', '.join(allowed)}")
    return raw.strip().lower()


def parse_limit(raw: Any, *, key: str = "limit", maximum: int = 100) -> int | None:
    """Optional positive integer query argument; blank means the configured default."""
    if raw is None or raw == "":
        return None
    limit = _coerce_int(key, raw)
    if not 1 <= limit <= maximum:
        raise ValidationError(f"{key} must be between 1 and {maximum}")
    return limit
