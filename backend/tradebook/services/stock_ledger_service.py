# Overview: Stock ledger; maps document lifecycle transitions to stock deltas and applies them.

"""
Stock Ledger

Product.stock is written only from here. Each document transition maps to a
signed delta per line item:

    invoice          created  -> -quantity
    invoice          deleted  -> +quantity
    purchase_order   created  -> +quantity
    purchase_order   deleted  -> -quantity

Deltas are applied with one UPDATE per line, inside the caller's unit of
work (the builder commits or rolls back the document together with the
stock changes). Invoice creation uses a conditional decrement
(`WHERE stock >= quantity`), so two concurrent invoices cannot jointly
overdraw a product even if both passed the availability pre-check.

Every applied delta leaves a StockMovement row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Product, StockMovement
from ..time_utils import utcnow
from .products_service import ProductNotFoundError

DOCUMENT_INVOICE = "invoice"
DOCUMENT_PURCHASE_ORDER = "purchase_order"
DOCUMENT_CATALOG = "catalog"

TRANSITION_CREATED = "created"
TRANSITION_DELETED = "deleted"
TRANSITION_ADJUSTED = "adjusted"

_DELTA_SIGNS = {
    (DOCUMENT_INVOICE, TRANSITION_CREATED): -1,
    (DOCUMENT_INVOICE, TRANSITION_DELETED): 1,
    (DOCUMENT_PURCHASE_ORDER, TRANSITION_CREATED): 1,
    (DOCUMENT_PURCHASE_ORDER, TRANSITION_DELETED): -1,
}

# Transitions whose decrements must never take stock below zero
_GUARDED = {(DOCUMENT_INVOICE, TRANSITION_CREATED)}


class StockLine(Protocol):
    product_id: int
    quantity: int


class InsufficientStockError(Exception):
    """
    Raised when a line asks for more than the product has in stock.

    `items` lists every offending line as
    {"product_id", "product_name", "requested", "available"}.
    """

    def __init__(self, items: list[dict]):
        self.items = items
        names = ", ".join(f"{i['product_name']} (available: {i['available']})" for i in items)
        super().__init__(f"Insufficient stock for: {names}")


@dataclass(frozen=True)
class StockDelta:
    product_id: int
    delta: int
    # Conditional decrement: fail instead of going below zero
    guarded: bool = False


def stock_deltas(document_type: str, transition: str, lines: Iterable[StockLine]) -> list[StockDelta]:
    """Pure mapping from a document transition to per-line stock deltas."""
    try:
        sign = _DELTA_SIGNS[(document_type, transition)]
    except KeyError:
        raise ValueError(f"No stock effect defined for {document_type}.{transition}")
    guarded = (document_type, transition) in _GUARDED
    return [
        StockDelta(product_id=line.product_id, delta=sign * line.quantity, guarded=guarded)
        for line in lines
    ]


def check_availability(lines: Iterable[StockLine], products: Mapping[int, Product]) -> None:
    """
    Pre-check every line against current stock before anything is written.

    Each line is compared with the product's stock on its own; a product
    listed on several lines is caught by the conditional decrement instead.
    """
    shortages = []
    for line in lines:
        product = products[line.product_id]
        if product.stock < line.quantity:
            shortages.append({
                "product_id": product.id,
                "product_name": product.name,
                "requested": line.quantity,
                "available": product.stock,
            })
    if shortages:
        raise InsufficientStockError(shortages)


def _apply_one(item: StockDelta) -> bool:
    stmt = update(Product).where(Product.id == item.product_id)
    if item.guarded:
        stmt = stmt.where(Product.stock >= -item.delta)
    stmt = stmt.values(
        stock=Product.stock + item.delta,
        version_id=Product.version_id + 1,
        updated_at=utcnow(),
    )
    result = db.session.execute(stmt)
    return bool(result.rowcount)


def apply_stock_deltas(
    deltas: Iterable[StockDelta],
    *,
    document_type: str,
    transition: str,
    document_number: str | None = None,
    actor_user_id: int | None = None,
) -> list[StockMovement]:
    """
    Apply deltas within the current session transaction (no commit).

    Raises InsufficientStockError when a guarded decrement finds too little
    stock, ProductNotFoundError when a product row is gone. The caller rolls
    back in both cases.
    """
    reason = f"{document_type}.{transition}"
    movements = []
    for item in deltas:
        if not _apply_one(item):
            product = db.session.get(Product, item.product_id)
            if product is None:
                raise ProductNotFoundError([item.product_id])
            db.session.refresh(product)
            current_app.logger.warning(
                "Conditional stock decrement refused: product=%s requested=%s available=%s document=%s",
                product.id, -item.delta, product.stock, document_number,
            )
            raise InsufficientStockError([{
                "product_id": product.id,
                "product_name": product.name,
                "requested": -item.delta,
                "available": product.stock,
            }])

        stock_after = (
            db.session.query(Product.stock).filter(Product.id == item.product_id).scalar()
        )
        movement = StockMovement(
            product_id=item.product_id,
            quantity_delta=item.delta,
            stock_after=stock_after,
            reason=reason,
            document_type=document_type,
            document_number=document_number,
            actor_user_id=actor_user_id,
        )
        db.session.add(movement)
        movements.append(movement)

    return movements


def adjust_stock(*, product: Product, new_stock: int, actor_user_id: int | None = None) -> StockMovement | None:
    """Manual catalog correction: set stock to new_stock via a single delta (no commit)."""
    delta = new_stock - product.stock
    if delta == 0:
        return None
    movements = apply_stock_deltas(
        [StockDelta(product_id=product.id, delta=delta)],
        document_type=DOCUMENT_CATALOG,
        transition=TRANSITION_ADJUSTED,
        actor_user_id=actor_user_id,
    )
    return movements[0]
