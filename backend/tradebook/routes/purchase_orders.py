# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

"""
Purchase order routes.

Two creation entry points build the same kind of purchase order:
- POST /api/purchase-orders       minimal form: items only, billed at product cost
- POST /api/purchase-orders/form  expanded form: supplier/shipment header,
                                  per-line rate/discount, tax configuration
"""

from io import BytesIO

from flask import Blueprint, request, g, current_app, send_file

from ..models import (
    PurchaseOrder,
    DOCUMENT_STATUSES,
    PURCHASE_ORDER_TEXT_FIELDS,
    PURCHASE_ORDER_DATE_FIELDS,
)
from ..services import purchase_order_service
from ..services.purchase_order_service import PurchaseOrderNotFoundError
from ..services.products_service import ProductNotFoundError
from ..services.rendering_service import (
    DocumentRenderError,
    render_purchase_order_html,
    render_purchase_order_pdf,
)
from ..services.totals_service import parse_tax_config
from ..validation import (
    ValidationError,
    parse_document_header,
    parse_line_items,
    parse_status,
)
from ..decorators import require_auth

purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

PDF_ERROR = "Failed to generate PDF. Please try again later."


def _create(payload, *, expanded: bool):
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        if expanded:
            items = parse_line_items(payload.get("items"), price_field="rate", allow_line_discount=True)
            header = parse_document_header(
                model=PurchaseOrder,
                payload=payload,
                fields=PURCHASE_ORDER_TEXT_FIELDS + PURCHASE_ORDER_DATE_FIELDS,
            )
            tax_config = parse_tax_config(payload, include_transport=False)
        else:
            items = parse_line_items(payload.get("items"))
            header = None
            tax_config = None

        purchase_order = purchase_order_service.create_purchase_order(
            user_id=g.current_user.id,
            items=items,
            header=header,
            tax_config=tax_config,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFoundError as e:
        return {"error": str(e), "details": {"product_ids": e.product_ids}}, 404
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return {"error": "Internal server error"}, 500

    return purchase_order.to_dict(), 201


@purchase_orders_bp.get("")
@require_auth
def list_purchase_orders_route():
    orders = purchase_order_service.list_purchase_orders(user=g.current_user)
    return {"items": [po.to_dict() for po in orders], "count": len(orders)}


@purchase_orders_bp.get("/<int:purchase_order_id>")
@require_auth
def get_purchase_order_route(purchase_order_id: int):
    try:
        order = purchase_order_service.get_purchase_order(
            purchase_order_id=purchase_order_id,
            user=g.current_user,
        )
    except PurchaseOrderNotFoundError as e:
        return {"error": str(e)}, 404
    return order.to_dict()


@purchase_orders_bp.post("")
@require_auth
def create_purchase_order_route():
    """Minimal form. Body: {items: [{product_id, quantity}]}"""
    return _create(request.get_json(silent=True), expanded=False)


@purchase_orders_bp.post("/form")
@require_auth
def create_purchase_order_form_route():
    """
    Expanded form.

    Body:
    - items: [{product_id, quantity, rate?, discount?, description?, hsn_code?, per?}] (required)
    - po_date, gst_no, shipment_*, supplier_*, payment_terms, delivery,
      terms_and_conditions (optional)
    - discount_enabled/discount_rate, sgst/cgst/igst _enabled/_rate (optional)
    """
    return _create(request.get_json(silent=True), expanded=True)


@purchase_orders_bp.patch("/<int:purchase_order_id>/status")
@require_auth
def update_purchase_order_status_route(purchase_order_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        status = parse_status(payload.get("status"), DOCUMENT_STATUSES)
        order = purchase_order_service.update_purchase_order_status(
            purchase_order_id=purchase_order_id,
            user=g.current_user,
            status=status,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except PurchaseOrderNotFoundError as e:
        return {"error": str(e)}, 404

    return order.to_dict()


@purchase_orders_bp.delete("/<int:purchase_order_id>")
@require_auth
def delete_purchase_order_route(purchase_order_id: int):
    """Delete a purchase order and take its quantities back out of stock."""
    try:
        purchase_order_service.delete_purchase_order(
            purchase_order_id=purchase_order_id,
            user=g.current_user,
        )
    except PurchaseOrderNotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete purchase order id=%s", purchase_order_id)
        return {"error": "Internal server error"}, 500

    return {"message": "Purchase order deleted successfully"}, 200


@purchase_orders_bp.get("/<int:purchase_order_id>/html")
@require_auth
def purchase_order_html_route(purchase_order_id: int):
    try:
        order = purchase_order_service.get_purchase_order(
            purchase_order_id=purchase_order_id,
            user=g.current_user,
        )
    except PurchaseOrderNotFoundError as e:
        return {"error": str(e)}, 404
    return render_purchase_order_html(order), 200, {"Content-Type": "text/html; charset=utf-8"}


@purchase_orders_bp.get("/<int:purchase_order_id>/pdf")
@require_auth
def purchase_order_pdf_route(purchase_order_id: int):
    try:
        order = purchase_order_service.get_purchase_order(
            purchase_order_id=purchase_order_id,
            user=g.current_user,
        )
    except PurchaseOrderNotFoundError as e:
        return {"error": str(e)}, 404

    try:
        pdf = render_purchase_order_pdf(order)
    except DocumentRenderError:
        return {"error": PDF_ERROR}, 500

    return send_file(
        BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"purchase-order-{order.order_number}.pdf",
    )
