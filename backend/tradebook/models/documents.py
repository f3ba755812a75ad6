from __future__ import annotations

from ..extensions import db
from ..money_utils import to_json_number
from ..time_utils import to_iso_date, to_utc_z, utcnow

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
DOCUMENT_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_CANCELLED)

# Descriptive header fields: stored verbatim, never interpreted by the
# totals or stock logic.
INVOICE_TEXT_FIELDS = (
    "tax_inv_no", "chalan_no", "order_no", "payment_term", "broker_name",
    "irn", "ack_no",
    "billed_to_name", "billed_to_address", "billed_to_state", "billed_to_gstin", "billed_to_pan",
    "transporter_name", "lr_no", "vehicle_no", "place_of_supply", "from_place", "to_place", "no_of_boxes",
    "shipped_to_name", "shipped_to_address", "shipped_to_state", "shipped_to_gstin", "shipped_to_pan",
    "bank_details", "branch", "rtgs_neft_ifsc_code",
    "terms_and_conditions", "signature_by",
)
INVOICE_DATE_FIELDS = (
    "tax_inv_date", "chalan_date", "order_date", "due_on", "lr_date", "signature_date",
)

PURCHASE_ORDER_TEXT_FIELDS = (
    "gst_no",
    "shipment_name", "shipment_address", "shipment_state", "shipment_phone",
    "supplier_name", "supplier_address", "supplier_state", "supplier_gst_no",
    "supplier_phone", "supplier_email", "supplier_contact_person",
    "payment_terms", "delivery", "terms_and_conditions",
)
PURCHASE_ORDER_DATE_FIELDS = ("po_date",)


class TaxTotalsMixin:
    """Tax configuration as supplied at creation, and the computed breakdown."""

    discount_enabled = db.Column(db.Boolean, nullable=False, default=False)
    discount_rate = db.Column(db.Numeric(9, 4), nullable=False, default=0)
    sgst_enabled = db.Column(db.Boolean, nullable=False, default=False)
    sgst_rate = db.Column(db.Numeric(9, 4), nullable=False, default=0)
    cgst_enabled = db.Column(db.Boolean, nullable=False, default=False)
    cgst_rate = db.Column(db.Numeric(9, 4), nullable=False, default=0)
    igst_enabled = db.Column(db.Boolean, nullable=False, default=False)
    igst_rate = db.Column(db.Numeric(9, 4), nullable=False, default=0)

    # Pre-tax line subtotal
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    sgst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    cgst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    igst_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    # Final payable amount
    net_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    def _tax_totals_dict(self) -> dict:
        return {
            "discount_enabled": self.discount_enabled,
            "discount_rate": to_json_number(self.discount_rate),
            "sgst_enabled": self.sgst_enabled,
            "sgst_rate": to_json_number(self.sgst_rate),
            "cgst_enabled": self.cgst_enabled,
            "cgst_rate": to_json_number(self.cgst_rate),
            "igst_enabled": self.igst_enabled,
            "igst_rate": to_json_number(self.igst_rate),
            "total_amount": to_json_number(self.total_amount),
            "discount_amount": to_json_number(self.discount_amount),
            "sgst_amount": to_json_number(self.sgst_amount),
            "cgst_amount": to_json_number(self.cgst_amount),
            "igst_amount": to_json_number(self.igst_amount),
            "net_amount": to_json_number(self.net_amount),
        }


class Invoice(TaxTotalsMixin, db.Model):
    """
    Tax invoice (stock outbound).

    Line items and totals are fixed at creation; only status may change.
    Deleting an invoice restores the stock its lines consumed.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_user_created", "user_id", "created_at"),
        db.Index("ix_invoices_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable document number (e.g., "INV-1718000000000-42")
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)

    # Tax invoice details
    tax_inv_no = db.Column(db.String(64), nullable=False, default="")
    tax_inv_date = db.Column(db.Date, nullable=True)
    chalan_no = db.Column(db.String(64), nullable=False, default="")
    chalan_date = db.Column(db.Date, nullable=True)
    order_no = db.Column(db.String(64), nullable=False, default="")
    order_date = db.Column(db.Date, nullable=True)
    payment_term = db.Column(db.String(255), nullable=False, default="")
    due_on = db.Column(db.Date, nullable=True)
    broker_name = db.Column(db.String(255), nullable=False, default="")
    irn = db.Column(db.String(128), nullable=False, default="")
    ack_no = db.Column(db.String(64), nullable=False, default="")

    # Billed to
    billed_to_name = db.Column(db.String(255), nullable=False, default="")
    billed_to_address = db.Column(db.Text, nullable=False, default="")
    billed_to_state = db.Column(db.String(64), nullable=False, default="")
    billed_to_gstin = db.Column(db.String(32), nullable=False, default="")
    billed_to_pan = db.Column(db.String(32), nullable=False, default="")

    # Transporter
    transporter_name = db.Column(db.String(255), nullable=False, default="")
    lr_no = db.Column(db.String(64), nullable=False, default="")
    lr_date = db.Column(db.Date, nullable=True)
    vehicle_no = db.Column(db.String(32), nullable=False, default="")
    place_of_supply = db.Column(db.String(255), nullable=False, default="")
    from_place = db.Column(db.String(255), nullable=False, default="")
    to_place = db.Column(db.String(255), nullable=False, default="")
    no_of_boxes = db.Column(db.String(32), nullable=False, default="")

    # Shipped to
    shipped_to_name = db.Column(db.String(255), nullable=False, default="")
    shipped_to_address = db.Column(db.Text, nullable=False, default="")
    shipped_to_state = db.Column(db.String(64), nullable=False, default="")
    shipped_to_gstin = db.Column(db.String(32), nullable=False, default="")
    shipped_to_pan = db.Column(db.String(32), nullable=False, default="")

    # Bank details, terms, signature
    bank_details = db.Column(db.Text, nullable=False, default="")
    branch = db.Column(db.String(255), nullable=False, default="")
    rtgs_neft_ifsc_code = db.Column(db.String(32), nullable=False, default="")
    terms_and_conditions = db.Column(db.Text, nullable=False, default="")
    signature_by = db.Column(db.String(255), nullable=False, default="")
    signature_date = db.Column(db.Date, nullable=True)

    # Invoice-only charge, applied after discount and before tax
    transport_enabled = db.Column(db.Boolean, nullable=False, default=False)
    transport_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("invoices", lazy=True))
    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} status={self.status}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "user_id": self.user_id,
            "status": self.status,
            "transport_enabled": self.transport_enabled,
            "transport_amount": to_json_number(self.transport_amount),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        for field in INVOICE_TEXT_FIELDS:
            data[field] = getattr(self, field)
        for field in INVOICE_DATE_FIELDS:
            data[field] = to_iso_date(getattr(self, field))
        data.update(self._tax_totals_dict())
        data["user"] = self.user.to_summary() if self.user else None
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    """Line item snapshot: price/description/HSN as billed, not as currently in the catalog."""
    __tablename__ = "invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    # Display-only
    description = db.Column(db.String(255), nullable=False, default="")
    hsn_code = db.Column(db.String(32), nullable=False, default="")
    per = db.Column(db.String(32), nullable=False, default="pcs")

    invoice = db.relationship("Invoice", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": to_json_number(self.price),
            "subtotal": to_json_number(self.subtotal),
            "description": self.description,
            "hsn_code": self.hsn_code,
            "per": self.per,
            "product": self.product.to_summary() if self.product else None,
        }


class PurchaseOrder(TaxTotalsMixin, db.Model):
    """
    Purchase order (stock inbound).

    Totals are computed from cost rather than price and there is no
    transport charge. Creating a purchase order adds its quantities to
    stock; deleting it takes them back out.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_user_created", "user_id", "created_at"),
        db.Index("ix_purchase_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable document number (e.g., "PO-1718000000000-7")
    order_number = db.Column(db.String(64), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)

    # Purchase order details
    po_date = db.Column(db.Date, nullable=True)
    gst_no = db.Column(db.String(32), nullable=False, default="")

    # Shipment address
    shipment_name = db.Column(db.String(255), nullable=False, default="")
    shipment_address = db.Column(db.Text, nullable=False, default="")
    shipment_state = db.Column(db.String(64), nullable=False, default="")
    shipment_phone = db.Column(db.String(64), nullable=False, default="")

    # Supplier
    supplier_name = db.Column(db.String(255), nullable=False, default="")
    supplier_address = db.Column(db.Text, nullable=False, default="")
    supplier_state = db.Column(db.String(64), nullable=False, default="")
    supplier_gst_no = db.Column(db.String(32), nullable=False, default="")
    supplier_phone = db.Column(db.String(64), nullable=False, default="")
    supplier_email = db.Column(db.String(255), nullable=False, default="")
    supplier_contact_person = db.Column(db.String(255), nullable=False, default="")

    # Payment, delivery, terms
    payment_terms = db.Column(db.Text, nullable=False, default="")
    delivery = db.Column(db.Text, nullable=False, default="")
    terms_and_conditions = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("purchase_orders", lazy=True))
    items = db.relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} number={self.order_number!r} status={self.status}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        for field in PURCHASE_ORDER_TEXT_FIELDS:
            data[field] = getattr(self, field)
        for field in PURCHASE_ORDER_DATE_FIELDS:
            data[field] = to_iso_date(getattr(self, field))
        data.update(self._tax_totals_dict())
        data["user"] = self.user.to_summary() if self.user else None
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    # Unit rate actually billed (defaults to product cost)
    cost = db.Column(db.Numeric(12, 2), nullable=False)
    # Per-line percentage discount, applied before summation
    discount = db.Column(db.Numeric(9, 4), nullable=False, default=0)
    # Line value after the per-line discount
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    description = db.Column(db.String(255), nullable=False, default="")
    hsn_code = db.Column(db.String(32), nullable=False, default="")
    per = db.Column(db.String(32), nullable=False, default="pcs")

    purchase_order = db.relationship("PurchaseOrder", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "cost": to_json_number(self.cost),
            "discount": to_json_number(self.discount),
            "subtotal": to_json_number(self.subtotal),
            "description": self.description,
            "hsn_code": self.hsn_code,
            "per": self.per,
            "product": self.product.to_summary() if self.product else None,
        }


class DocumentSequence(db.Model):
    """Per-document-type counter backing the human-readable numbers."""
    __tablename__ = "document_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
