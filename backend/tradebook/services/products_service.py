# Overview: Service-layer operations for the product catalog.

from __future__ import annotations

from typing import Iterable

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InvoiceItem, Product, PurchaseOrderItem
from ..validation import ConflictError
from .concurrency import lock_for_update

PRODUCT_MUTABLE_FIELDS = {"name", "description", "barcode", "price", "cost", "unit"}


class ProductNotFoundError(Exception):
    """Raised when one or more referenced products do not exist."""

    def __init__(self, product_ids: Iterable[int]):
        self.product_ids = sorted(set(product_ids))
        ids = ", ".join(str(pid) for pid in self.product_ids)
        super().__init__(f"Product not found: {ids}")


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _ensure_barcode_available(barcode: str | None, *, exclude_id: int | None = None) -> None:
    if not barcode:
        return
    query = db.session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Product with this barcode already exists")


def list_products(*, search: str | None = None, barcode: str | None = None) -> list[Product]:
    """Newest first. `search` matches name or description, `barcode` is exact."""
    query = db.session.query(Product)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            db.or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )
    if barcode:
        query = query.filter(Product.barcode == barcode.strip())
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError([product_id])
    return product


def resolve_products(product_ids: Iterable[int], *, lock: bool = False) -> dict[int, Product]:
    """
    Load every referenced product in one query.

    Raises ProductNotFoundError naming all missing ids. With lock=True the
    rows are selected FOR UPDATE on databases that support it.
    """
    wanted = set(product_ids)
    query = db.session.query(Product).filter(Product.id.in_(wanted))
    if lock:
        query = lock_for_update(query)
    found = {p.id: p for p in query.all()}
    missing = wanted - found.keys()
    if missing:
        raise ProductNotFoundError(missing)
    return found


def create_product(*, patch: dict, actor_user_id: int | None = None) -> Product:
    """
    Create a product from a validated patch.

    Opening stock is booked through the stock ledger so it shows up in the
    movement history like any other change.
    """
    from .stock_ledger_service import adjust_stock

    _ensure_barcode_available(patch.get("barcode"))

    product = Product(stock=0)
    apply_product_patch(product, patch)
    db.session.add(product)

    try:
        db.session.flush()
        opening = patch.get("stock") or 0
        if opening:
            adjust_stock(product=product, new_stock=opening, actor_user_id=actor_user_id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product with this barcode already exists")

    return product


def update_product(*, product_id: int, patch: dict, actor_user_id: int | None = None) -> Product:
    """
    Apply a validated patch. A `stock` value is treated as a manual
    correction and recorded as a "catalog.adjusted" movement.
    """
    from .stock_ledger_service import adjust_stock

    product = get_product(product_id)

    if "barcode" in patch:
        _ensure_barcode_available(patch["barcode"], exclude_id=product.id)

    apply_product_patch(product, patch)

    try:
        if patch.get("stock") is not None and patch["stock"] != product.stock:
            adjust_stock(product=product, new_stock=patch["stock"], actor_user_id=actor_user_id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product with this barcode already exists")

    return product


def delete_product(*, product_id: int) -> None:
    """
    Delete a product that no document references.

    Products on an invoice or purchase order stay, since deleting the
    document later must be able to restore their stock.
    """
    product = get_product(product_id)

    referenced = (
        db.session.query(InvoiceItem.id).filter_by(product_id=product.id).first()
        or db.session.query(PurchaseOrderItem.id).filter_by(product_id=product.id).first()
    )
    if referenced:
        raise ConflictError("Product is referenced by invoices or purchase orders")

    db.session.delete(product)
    db.session.commit()
