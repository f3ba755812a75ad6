"""Initial schema: users, sessions, catalog, stock movements, invoices, purchase orders

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _text(name, length=255):
    return sa.Column(name, sa.String(length=length), nullable=False, server_default="")


def _long_text(name):
    return sa.Column(name, sa.Text(), nullable=False, server_default="")


def _tax_totals_columns():
    cols = []
    for name in ("discount", "sgst", "cgst", "igst"):
        cols.append(sa.Column(f"{name}_enabled", sa.Boolean(), nullable=False, server_default=sa.false()))
        cols.append(sa.Column(f"{name}_rate", sa.Numeric(9, 4), nullable=False, server_default="0"))
    for name in ("total_amount", "discount_amount", "sgst_amount", "cgst_amount", "igst_amount", "net_amount"):
        cols.append(sa.Column(name, sa.Numeric(14, 2), nullable=False, server_default="0"))
    return cols


def _line_item_columns():
    return [
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("hsn_code", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("per", sa.String(length=32), nullable=False, server_default="pcs"),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="EMPLOYEE"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(length=255), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_user_id", "session_tokens", ["user_id"])
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)
    op.create_index("ix_session_tokens_expires_at", "session_tokens", ["expires_at"])
    op.create_index("ix_session_tokens_is_revoked", "session_tokens", ["is_revoked"])
    op.create_index("ix_session_tokens_user_active", "session_tokens", ["user_id", "is_revoked"])

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("barcode", sa.String(length=64), nullable=True, unique=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("cost", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit", sa.String(length=32), nullable=False, server_default="pcs"),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_name", "products", ["name"])

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity_delta", sa.Integer(), nullable=False),
        sa.Column("stock_after", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=64), nullable=False),
        sa.Column("document_type", sa.String(length=32), nullable=True),
        sa.Column("document_number", sa.String(length=64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_movements_product_id", "stock_movements", ["product_id"])
    op.create_index("ix_stock_movements_reason", "stock_movements", ["reason"])
    op.create_index("ix_stock_movements_document_number", "stock_movements", ["document_number"])
    op.create_index("ix_stock_movements_occurred_at", "stock_movements", ["occurred_at"])
    op.create_index("ix_stock_movements_product_occurred", "stock_movements", ["product_id", "occurred_at"])

    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("document_type", sa.String(length=32), nullable=False, unique=True),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default="1"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        _text("tax_inv_no", 64),
        sa.Column("tax_inv_date", sa.Date(), nullable=True),
        _text("chalan_no", 64),
        sa.Column("chalan_date", sa.Date(), nullable=True),
        _text("order_no", 64),
        sa.Column("order_date", sa.Date(), nullable=True),
        _text("payment_term"),
        sa.Column("due_on", sa.Date(), nullable=True),
        _text("broker_name"),
        _text("irn", 128),
        _text("ack_no", 64),
        _text("billed_to_name"),
        _long_text("billed_to_address"),
        _text("billed_to_state", 64),
        _text("billed_to_gstin", 32),
        _text("billed_to_pan", 32),
        _text("transporter_name"),
        _text("lr_no", 64),
        sa.Column("lr_date", sa.Date(), nullable=True),
        _text("vehicle_no", 32),
        _text("place_of_supply"),
        _text("from_place"),
        _text("to_place"),
        _text("no_of_boxes", 32),
        _text("shipped_to_name"),
        _long_text("shipped_to_address"),
        _text("shipped_to_state", 64),
        _text("shipped_to_gstin", 32),
        _text("shipped_to_pan", 32),
        _long_text("bank_details"),
        _text("branch"),
        _text("rtgs_neft_ifsc_code", 32),
        _long_text("terms_and_conditions"),
        _text("signature_by"),
        sa.Column("signature_date", sa.Date(), nullable=True),
        sa.Column("transport_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("transport_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        *_tax_totals_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoices_user_id", "invoices", ["user_id"])
    op.create_index("ix_invoices_status", "invoices", ["status"])
    op.create_index("ix_invoices_created_at", "invoices", ["created_at"])
    op.create_index("ix_invoices_user_created", "invoices", ["user_id", "created_at"])
    op.create_index("ix_invoices_status_created", "invoices", ["status", "created_at"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=False),
        *_line_item_columns(),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"])
    op.create_index("ix_invoice_items_product_id", "invoice_items", ["product_id"])

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("po_date", sa.Date(), nullable=True),
        _text("gst_no", 32),
        _text("shipment_name"),
        _long_text("shipment_address"),
        _text("shipment_state", 64),
        _text("shipment_phone", 64),
        _text("supplier_name"),
        _long_text("supplier_address"),
        _text("supplier_state", 64),
        _text("supplier_gst_no", 32),
        _text("supplier_phone", 64),
        _text("supplier_email"),
        _text("supplier_contact_person"),
        _long_text("payment_terms"),
        _long_text("delivery"),
        _long_text("terms_and_conditions"),
        *_tax_totals_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_purchase_orders_user_id", "purchase_orders", ["user_id"])
    op.create_index("ix_purchase_orders_status", "purchase_orders", ["status"])
    op.create_index("ix_purchase_orders_created_at", "purchase_orders", ["created_at"])
    op.create_index("ix_purchase_orders_user_created", "purchase_orders", ["user_id", "created_at"])
    op.create_index("ix_purchase_orders_status_created", "purchase_orders", ["status", "created_at"])

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("purchase_order_id", sa.Integer(), sa.ForeignKey("purchase_orders.id"), nullable=False),
        *_line_item_columns(),
        sa.Column("cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount", sa.Numeric(9, 4), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_purchase_order_items_purchase_order_id", "purchase_order_items", ["purchase_order_id"])
    op.create_index("ix_purchase_order_items_product_id", "purchase_order_items", ["product_id"])


def downgrade():
    op.drop_table("purchase_order_items")
    op.drop_table("purchase_orders")
    op.drop_table("invoice_items")
    op.drop_table("invoices")
    op.drop_table("document_sequences")
    op.drop_table("stock_movements")
    op.drop_table("products")
    op.drop_table("session_tokens")
    op.drop_table("users")
