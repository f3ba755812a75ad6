# Overview: Invoice builder; validates lines, computes totals and books the stock decrement.

"""
Invoice Service

create_invoice() is one unit of work: numbering, the invoice row, its line
items, every stock decrement and the stock movement rows are committed
together or rolled back together. Concurrency failures re-run the whole unit
via run_with_retry().

Ownership: admins see every invoice; employees only their own. A
non-owned invoice is reported exactly like a missing one.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import DOCUMENT_STATUSES, Invoice, InvoiceItem, User
from ..money_utils import ZERO, quantize_money, to_decimal
from ..validation import LineItemInput, ValidationError
from .concurrency import run_with_retry
from .document_service import INVOICE_PREFIX, next_document_number
from .products_service import ProductNotFoundError, resolve_products
from .stock_ledger_service import (
    DOCUMENT_INVOICE,
    TRANSITION_CREATED,
    TRANSITION_DELETED,
    InsufficientStockError,
    apply_stock_deltas,
    check_availability,
    stock_deltas,
)
from .totals_service import TaxConfig, enforce_tax_policy, invoice_totals, line_value


class InvoiceNotFoundError(Exception):
    """Raised when an invoice is missing or not visible to the caller."""

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        super().__init__("Invoice not found")


def _scoped_query(user: User):
    query = db.session.query(Invoice)
    if not user.is_admin:
        query = query.filter(Invoice.user_id == user.id)
    return query


def list_invoices(*, user: User) -> list[Invoice]:
    return _scoped_query(user).order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def get_invoice(*, invoice_id: int, user: User) -> Invoice:
    invoice = _scoped_query(user).filter(Invoice.id == invoice_id).first()
    if invoice is None:
        raise InvoiceNotFoundError(invoice_id)
    return invoice


def create_invoice(
    *,
    user_id: int,
    items: list[LineItemInput],
    header: dict | None = None,
    tax_config: TaxConfig | None = None,
    adjusted_total: Decimal | None = None,
) -> Invoice:
    """
    Create an invoice and decrement stock for every line.

    Line price defaults to the product's current price unless the caller
    overrides it; description and unit default to the product's name and unit.

    Raises:
        ValidationError: no items, or the tax configuration is rejected
        ProductNotFoundError: a referenced product does not exist
        InsufficientStockError: a line asks for more than is in stock
    """
    if not items:
        raise ValidationError("At least one item is required")

    header = header or {}
    tax_config = tax_config or TaxConfig()
    if current_app.config.get("STRICT_TAX_VALIDATION"):
        enforce_tax_policy(tax_config)

    def _op() -> Invoice:
        products = resolve_products([line.product_id for line in items], lock=True)
        check_availability(items, products)

        invoice_items = []
        values = []
        for line in items:
            product = products[line.product_id]
            price = line.unit_amount if line.unit_amount is not None else (to_decimal(product.price) or ZERO)
            value = line_value(price, line.quantity)
            values.append(value)
            invoice_items.append(InvoiceItem(
                product_id=product.id,
                quantity=line.quantity,
                price=quantize_money(price),
                subtotal=quantize_money(value),
                description=line.description or product.name,
                hsn_code=line.hsn_code,
                per=line.per or product.unit,
            ))

        totals = invoice_totals(values, tax_config, adjusted_total=adjusted_total)
        number = next_document_number(document_type=DOCUMENT_INVOICE, prefix=INVOICE_PREFIX)

        invoice = Invoice(
            invoice_number=number,
            user_id=user_id,
            **header,
            **tax_config.to_columns(include_transport=True),
            **totals.to_columns(include_transport=True),
        )
        invoice.items = invoice_items
        db.session.add(invoice)
        db.session.flush()

        apply_stock_deltas(
            stock_deltas(DOCUMENT_INVOICE, TRANSITION_CREATED, items),
            document_type=DOCUMENT_INVOICE,
            transition=TRANSITION_CREATED,
            document_number=number,
            actor_user_id=user_id,
        )

        db.session.commit()
        return invoice

    try:
        invoice = run_with_retry(_op)
    except InsufficientStockError as e:
        db.session.rollback()
        current_app.logger.warning("invoice.create rejected user_id=%s: %s", user_id, e)
        raise
    except (ValidationError, ProductNotFoundError):
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("invoice.create failed user_id=%s", user_id)
        raise

    current_app.logger.info(
        "Created invoice %s (id=%s, lines=%s, net=%s)",
        invoice.invoice_number, invoice.id, len(items), invoice.net_amount,
    )
    return invoice


def delete_invoice(*, invoice_id: int, user: User) -> None:
    """Put back the stock every line consumed, then remove the invoice."""

    def _op() -> str:
        invoice = get_invoice(invoice_id=invoice_id, user=user)
        number = invoice.invoice_number

        apply_stock_deltas(
            stock_deltas(DOCUMENT_INVOICE, TRANSITION_DELETED, invoice.items),
            document_type=DOCUMENT_INVOICE,
            transition=TRANSITION_DELETED,
            document_number=number,
            actor_user_id=user.id,
        )
        db.session.delete(invoice)
        db.session.commit()
        return number

    try:
        number = run_with_retry(_op)
    except (InvoiceNotFoundError, ProductNotFoundError):
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("invoice.delete failed id=%s", invoice_id)
        raise

    current_app.logger.info("Deleted invoice %s (id=%s)", number, invoice_id)


def update_invoice_status(*, invoice_id: int, user: User, status: str) -> Invoice:
    """Only the status of an invoice may change after creation; stock is untouched."""
    if status not in DOCUMENT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(DOCUMENT_STATUSES)}")

    invoice = get_invoice(invoice_id=invoice_id, user=user)
    invoice.status = status
    db.session.commit()
    return invoice
