# Overview: Purchase order builder; computes totals from cost and books the stock increment.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import DOCUMENT_STATUSES, PurchaseOrder, PurchaseOrderItem, User
from ..money_utils import ZERO, quantize_money, to_decimal
from ..validation import LineItemInput, ValidationError
from .concurrency import run_with_retry
from .document_service import PURCHASE_ORDER_PREFIX, next_document_number
from .products_service import ProductNotFoundError, resolve_products
from .stock_ledger_service import (
    DOCUMENT_PURCHASE_ORDER,
    TRANSITION_CREATED,
    TRANSITION_DELETED,
    apply_stock_deltas,
    stock_deltas,
)
from .totals_service import TaxConfig, enforce_tax_policy, line_value, purchase_order_totals


class PurchaseOrderNotFoundError(Exception):
    """Raised when a purchase order is missing or not visible to the caller."""

    def __init__(self, purchase_order_id: int):
        self.purchase_order_id = purchase_order_id
        super().__init__("Purchase order not found")


def _scoped_query(user: User):
    query = db.session.query(PurchaseOrder)
    if not user.is_admin:
        query = query.filter(PurchaseOrder.user_id == user.id)
    return query


def list_purchase_orders(*, user: User) -> list[PurchaseOrder]:
    return (
        _scoped_query(user)
        .order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        .all()
    )


def get_purchase_order(*, purchase_order_id: int, user: User) -> PurchaseOrder:
    purchase_order = _scoped_query(user).filter(PurchaseOrder.id == purchase_order_id).first()
    if purchase_order is None:
        raise PurchaseOrderNotFoundError(purchase_order_id)
    return purchase_order


def create_purchase_order(
    *,
    user_id: int,
    items: list[LineItemInput],
    header: dict | None = None,
    tax_config: TaxConfig | None = None,
) -> PurchaseOrder:
    """
    Create a purchase order and increment stock for every line.

    Both entry points land here. The minimal form passes items only: every
    line is billed at the product's cost and no discount or tax applies. The
    expanded form adds header fields, per-line rate/discount overrides and a
    tax configuration. There is no availability check; inbound stock has no
    upper bound.

    Raises ValidationError or ProductNotFoundError before anything is written.
    """
    if not items:
        raise ValidationError("At least one item is required")

    header = header or {}
    tax_config = tax_config or TaxConfig()
    if current_app.config.get("STRICT_TAX_VALIDATION"):
        enforce_tax_policy(tax_config)

    def _op() -> PurchaseOrder:
        products = resolve_products([line.product_id for line in items], lock=True)

        order_items = []
        values = []
        for line in items:
            product = products[line.product_id]
            cost = line.unit_amount if line.unit_amount is not None else (to_decimal(product.cost) or ZERO)
            value = line_value(cost, line.quantity, line.discount)
            values.append(value)
            order_items.append(PurchaseOrderItem(
                product_id=product.id,
                quantity=line.quantity,
                cost=quantize_money(cost),
                discount=line.discount,
                subtotal=quantize_money(value),
                description=line.description or product.name,
                hsn_code=line.hsn_code,
                per=line.per or product.unit,
            ))

        totals = purchase_order_totals(values, tax_config)
        number = next_document_number(
            document_type=DOCUMENT_PURCHASE_ORDER,
            prefix=PURCHASE_ORDER_PREFIX,
        )

        purchase_order = PurchaseOrder(
            order_number=number,
            user_id=user_id,
            **header,
            **tax_config.to_columns(include_transport=False),
            **totals.to_columns(include_transport=False),
        )
        purchase_order.items = order_items
        db.session.add(purchase_order)
        db.session.flush()

        apply_stock_deltas(
            stock_deltas(DOCUMENT_PURCHASE_ORDER, TRANSITION_CREATED, items),
            document_type=DOCUMENT_PURCHASE_ORDER,
            transition=TRANSITION_CREATED,
            document_number=number,
            actor_user_id=user_id,
        )

        db.session.commit()
        return purchase_order

    try:
        purchase_order = run_with_retry(_op)
    except (ValidationError, ProductNotFoundError):
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("purchase_order.create failed user_id=%s", user_id)
        raise

    current_app.logger.info(
        "Created purchase order %s (id=%s, lines=%s, net=%s)",
        purchase_order.order_number, purchase_order.id, len(items), purchase_order.net_amount,
    )
    return purchase_order


def delete_purchase_order(*, purchase_order_id: int, user: User) -> None:
    """
    Take the ordered quantities back out of stock, then remove the order.

    Unguarded: if the goods were already sold, stock goes negative.
    """

    def _op() -> str:
        purchase_order = get_purchase_order(purchase_order_id=purchase_order_id, user=user)
        number = purchase_order.order_number

        apply_stock_deltas(
            stock_deltas(DOCUMENT_PURCHASE_ORDER, TRANSITION_DELETED, purchase_order.items),
            document_type=DOCUMENT_PURCHASE_ORDER,
            transition=TRANSITION_DELETED,
            document_number=number,
            actor_user_id=user.id,
        )
        db.session.delete(purchase_order)
        db.session.commit()
        return number

    try:
        number = run_with_retry(_op)
    except (PurchaseOrderNotFoundError, ProductNotFoundError):
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("purchase_order.delete failed id=%s", purchase_order_id)
        raise

    current_app.logger.info("Deleted purchase order %s (id=%s)", number, purchase_order_id)


def update_purchase_order_status(*, purchase_order_id: int, user: User, status: str) -> PurchaseOrder:
    if status not in DOCUMENT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(DOCUMENT_STATUSES)}")

    purchase_order = get_purchase_order(purchase_order_id=purchase_order_id, user=user)
    purchase_order.status = status
    db.session.commit()
    return purchase_order
