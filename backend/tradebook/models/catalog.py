from __future__ import annotations

from ..extensions import db
from ..money_utils import to_json_number
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data.

    STOCK OWNERSHIP:
    Product.stock is written only by services.stock_ledger_service. Document
    creation/deletion and manual catalog corrections all go through that
    module so every change leaves a StockMovement row behind.

    Stock is conceptually non-negative but is not constrained at the schema
    level: deleting a purchase order whose goods were already sold can drive
    it below zero.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Globally unique when present
    barcode = db.Column(db.String(64), nullable=True, unique=True)

    # Selling unit price / purchase unit price
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default="pcs")

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    movements = db.relationship(
        "StockMovement",
        back_populates="product",
        lazy=True,
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "price": to_json_number(self.price),
            "cost": to_json_number(self.cost),
            "unit": self.unit,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "barcode": self.barcode,
            "price": to_json_number(self.price),
            "cost": to_json_number(self.cost),
            "stock": self.stock,
            "unit": self.unit,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only record of every stock delta applied to a product.

    Rows outlive the documents that caused them, so the history of a
    deleted invoice is still visible here (create and reversal).
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_occurred", "product_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity_delta = db.Column(db.Integer, nullable=False)
    stock_after = db.Column(db.Integer, nullable=False)

    # e.g. "invoice.created", "purchase_order.deleted", "catalog.adjusted"
    reason = db.Column(db.String(64), nullable=False, index=True)

    document_type = db.Column(db.String(32), nullable=True)
    document_number = db.Column(db.String(64), nullable=True, index=True)
    actor_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product", back_populates="movements")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity_delta": self.quantity_delta,
            "stock_after": self.stock_after,
            "reason": self.reason,
            "document_type": self.document_type,
            "document_number": self.document_number,
            "actor_user_id": self.actor_user_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }
