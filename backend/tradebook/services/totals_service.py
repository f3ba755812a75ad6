# Overview: Document totals: line values, discount, transport, GST split and rounding.

"""
Totals Calculator

Pure functions shared by the invoice and purchase order builders. Order of
application is fixed:

    line subtotal -> aggregate discount -> transport (invoices only)
    -> SGST / CGST / IGST on the resulting base -> net total

Purchase order lines may carry their own percentage discount, applied to the
line value before summation. It is independent of the aggregate discount
and both may apply.

Nothing here touches the database or the Flask app; strict-mode checks are
opt-in via enforce_tax_policy().
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from decimal import Decimal
from typing import Iterable

from ..money_utils import ZERO, floor_cents, floor_units, quantize_money, to_decimal
from ..validation import ValidationError

HUNDRED = Decimal("100")

DEFAULT_SGST_RATE = Decimal("9")
DEFAULT_CGST_RATE = Decimal("9")
DEFAULT_IGST_RATE = Decimal("18")

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


class TaxConfigError(ValidationError):
    """Tax configuration rejected by the strict policy."""


@dataclass(frozen=True)
class TaxConfig:
    """Discount / transport / tax switches and rates as supplied by the caller."""
    discount_enabled: bool = False
    discount_rate: Decimal = ZERO
    transport_enabled: bool = False
    transport_amount: Decimal = ZERO
    sgst_enabled: bool = False
    sgst_rate: Decimal = DEFAULT_SGST_RATE
    cgst_enabled: bool = False
    cgst_rate: Decimal = DEFAULT_CGST_RATE
    igst_enabled: bool = False
    igst_rate: Decimal = DEFAULT_IGST_RATE

    def to_columns(self, *, include_transport: bool) -> dict:
        """Column values for Invoice / PurchaseOrder (the transport amount is a total, not config)."""
        data = asdict(self)
        data.pop("transport_amount")
        if not include_transport:
            data.pop("transport_enabled")
        return data


@dataclass(frozen=True)
class TotalsBreakdown:
    subtotal: Decimal
    discount_amount: Decimal
    subtotal_after_discount: Decimal
    transport_amount: Decimal
    subtotal_after_transport: Decimal
    tax_base: Decimal
    sgst_amount: Decimal
    cgst_amount: Decimal
    igst_amount: Decimal
    # Unrounded base + taxes
    gross_total: Decimal
    # Final payable amount after rounding or the caller's adjustment
    net_amount: Decimal
    adjusted: bool = field(default=False)

    def to_columns(self, *, include_transport: bool) -> dict:
        """Stored amounts, rounded to two decimals."""
        data = {
            "total_amount": self.subtotal,
            "discount_amount": self.discount_amount,
            "sgst_amount": self.sgst_amount,
            "cgst_amount": self.cgst_amount,
            "igst_amount": self.igst_amount,
            "net_amount": self.net_amount,
        }
        if include_transport:
            data["transport_amount"] = self.transport_amount
        return {k: quantize_money(v) for k, v in data.items()}


def _parse_flag(payload: dict, key: str) -> bool:
    raw = payload.get(key)
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        s = raw.strip().lower()
        if s in _TRUE_STRINGS:
            return True
        if s in _FALSE_STRINGS:
            return False
    raise ValidationError(f"{key} must be a boolean")


def _parse_rate(payload: dict, key: str, default: Decimal) -> Decimal:
    if key not in payload or payload[key] is None:
        return default
    raw = payload[key]
    if isinstance(raw, (dict, list)):
        raise ValidationError(f"{key} must be a number")
    # Non-numeric rates count as 0, which disables that component
    value = to_decimal(raw)
    return value if value is not None else ZERO


def parse_tax_config(payload: dict | None, *, include_transport: bool) -> TaxConfig:
    """
    Build a TaxConfig from a request body.

    Flags accept booleans or "true"/"false"/"1"/"0". Rates and the transport
    amount accept numbers or numeric strings; anything non-numeric is 0.
    Omitted fields use the TaxConfig defaults.
    """
    payload = payload or {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    return TaxConfig(
        discount_enabled=_parse_flag(payload, "discount_enabled"),
        discount_rate=_parse_rate(payload, "discount_rate", ZERO),
        transport_enabled=_parse_flag(payload, "transport_enabled") if include_transport else False,
        transport_amount=_parse_rate(payload, "transport_amount", ZERO) if include_transport else ZERO,
        sgst_enabled=_parse_flag(payload, "sgst_enabled"),
        sgst_rate=_parse_rate(payload, "sgst_rate", DEFAULT_SGST_RATE),
        cgst_enabled=_parse_flag(payload, "cgst_enabled"),
        cgst_rate=_parse_rate(payload, "cgst_rate", DEFAULT_CGST_RATE),
        igst_enabled=_parse_flag(payload, "igst_enabled"),
        igst_rate=_parse_rate(payload, "igst_rate", DEFAULT_IGST_RATE),
    )


def enforce_tax_policy(config: TaxConfig) -> None:
    """
    Strict mode (STRICT_TAX_VALIDATION): reject combinations that are not
    meaningful for GST. Never applied unless the app is configured for it.
    """
    if config.igst_enabled and (config.sgst_enabled or config.cgst_enabled):
        raise TaxConfigError("IGST cannot be combined with CGST/SGST")
    if config.discount_enabled and not (ZERO <= config.discount_rate <= HUNDRED):
        raise TaxConfigError("discount_rate must be between 0 and 100")
    for name in ("sgst", "cgst", "igst"):
        if getattr(config, f"{name}_enabled") and getattr(config, f"{name}_rate") < 0:
            raise TaxConfigError(f"{name}_rate must be >= 0")
    if config.transport_enabled and config.transport_amount < 0:
        raise TaxConfigError("transport_amount must be >= 0")


def line_value(unit_amount: Decimal, quantity: int, discount: Decimal = ZERO) -> Decimal:
    """unit_amount * quantity, less an optional per-line percentage discount."""
    value = unit_amount * quantity
    if discount:
        value -= value * discount / HUNDRED
    return value


def _percent(base: Decimal, enabled: bool, rate: Decimal) -> Decimal:
    return base * rate / HUNDRED if enabled else ZERO


def compute_totals(
    line_values: Iterable[Decimal],
    config: TaxConfig,
    *,
    include_transport: bool,
) -> TotalsBreakdown:
    """
    Unrounded breakdown; net_amount equals gross_total here. Use
    invoice_totals() / purchase_order_totals() for the stored figures.

    No floor at zero is applied: a discount above 100% yields a negative
    base and the sign propagates to the taxes.
    """
    subtotal = sum(line_values, ZERO)

    discount_amount = _percent(subtotal, config.discount_enabled, config.discount_rate)
    after_discount = subtotal - discount_amount

    transport = ZERO
    if include_transport and config.transport_enabled:
        transport = config.transport_amount
    after_transport = after_discount + transport

    tax_base = after_transport if include_transport else after_discount

    sgst = _percent(tax_base, config.sgst_enabled, config.sgst_rate)
    cgst = _percent(tax_base, config.cgst_enabled, config.cgst_rate)
    igst = _percent(tax_base, config.igst_enabled, config.igst_rate)

    gross = tax_base + sgst + cgst + igst

    return TotalsBreakdown(
        subtotal=subtotal,
        discount_amount=discount_amount,
        subtotal_after_discount=after_discount,
        transport_amount=transport,
        subtotal_after_transport=after_transport,
        tax_base=tax_base,
        sgst_amount=sgst,
        cgst_amount=cgst,
        igst_amount=igst,
        gross_total=gross,
        net_amount=gross,
    )


def invoice_totals(
    line_values: Iterable[Decimal],
    config: TaxConfig,
    *,
    adjusted_total: Decimal | None = None,
) -> TotalsBreakdown:
    """
    Invoice totals: net = floor(abs(gross)) in whole currency units.

    A caller-supplied adjusted_total replaces the computed net as-is, with no
    comparison against the computed figure.
    """
    breakdown = compute_totals(line_values, config, include_transport=True)
    if adjusted_total is not None:
        return replace(breakdown, net_amount=adjusted_total, adjusted=True)
    return replace(breakdown, net_amount=floor_units(breakdown.gross_total))


def purchase_order_totals(line_values: Iterable[Decimal], config: TaxConfig) -> TotalsBreakdown:
    """Purchase order totals: net = floor(abs(gross)) to two decimals, no transport."""
    breakdown = compute_totals(line_values, config, include_transport=False)
    return replace(breakdown, net_amount=floor_cents(breakdown.gross_total))


