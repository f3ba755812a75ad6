# Overview: Inventory summary and stock movement history.

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Product, StockMovement
from ..money_utils import ZERO, to_decimal


def list_inventory(*, search: str | None = None) -> dict:
    """
    Current stock for every product plus a summary.

    `search` matches name or barcode (case-insensitive substring). Inventory
    value is cost x stock. Low stock is strictly below LOW_STOCK_THRESHOLD;
    out of stock is exactly zero (negative stock counts as low, not out).
    """
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)

    query = db.session.query(Product)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(Product.name.ilike(pattern), Product.barcode.ilike(pattern)))
    products = query.order_by(Product.name.asc(), Product.id.asc()).all()

    total_value: Decimal = sum(
        ((to_decimal(p.cost) or ZERO) * p.stock for p in products),
        ZERO,
    )
    low_stock = [p for p in products if p.stock < threshold]
    out_of_stock = [p for p in products if p.stock == 0]

    return {
        "products": [p.to_dict() for p in products],
        "summary": {
            "total_products": len(products),
            "total_inventory_value": float(total_value),
            "low_stock_count": len(low_stock),
            "out_of_stock_count": len(out_of_stock),
            "low_stock_items": [p.to_dict() for p in low_stock],
            "out_of_stock_items": [p.to_dict() for p in out_of_stock],
        },
    }


def list_movements(
    *,
    product_id: int | None = None,
    document_number: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[StockMovement], int]:
    """Stock movement audit trail, newest first."""
    query = db.session.query(StockMovement)
    if product_id:
        query = query.filter(StockMovement.product_id == product_id)
    if document_number:
        query = query.filter(StockMovement.document_number == document_number)

    total = query.count()

    if offset < 0:
        offset = 0
    if limit < 1:
        limit = 1
    if limit > 500:
        limit = 500

    rows = (
        query.order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total
