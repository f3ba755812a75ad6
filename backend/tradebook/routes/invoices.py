# Overview: Flask API routes for invoices; parses input and returns JSON responses.

"""
Invoice routes.

Employees see, update and delete only their own invoices; admins see all.
A non-owned invoice answers 404, same as a missing one.
"""

from io import BytesIO

from flask import Blueprint, request, g, current_app, send_file

from ..models import Invoice, DOCUMENT_STATUSES, INVOICE_TEXT_FIELDS, INVOICE_DATE_FIELDS
from ..services import invoice_service
from ..services.invoice_service import InvoiceNotFoundError
from ..services.products_service import ProductNotFoundError
from ..services.stock_ledger_service import InsufficientStockError
from ..services.rendering_service import (
    DocumentRenderError,
    render_invoice_html,
    render_invoice_pdf,
)
from ..services.totals_service import parse_tax_config
from ..validation import (
    ValidationError,
    parse_adjusted_total,
    parse_document_header,
    parse_line_items,
    parse_status,
)
from ..decorators import require_auth

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")

PDF_ERROR = "Failed to generate PDF. Please try again later."


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    invoices = invoice_service.list_invoices(user=g.current_user)
    return {"items": [inv.to_dict() for inv in invoices], "count": len(invoices)}


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id=invoice_id, user=g.current_user)
    except InvoiceNotFoundError as e:
        return {"error": str(e)}, 404
    return invoice.to_dict()


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create an invoice and decrement stock.

    Body:
    - items: [{product_id, quantity, price?, description?, hsn_code?, per?}] (required)
    - header fields (billed_to_*, shipped_to_*, transporter, bank, terms...) (optional)
    - discount_enabled/discount_rate, transport_enabled/transport_amount,
      sgst_enabled/sgst_rate, cgst_enabled/cgst_rate, igst_enabled/igst_rate (optional)
    - adjusted_total: number (optional) - replaces the computed net amount
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        items = parse_line_items(payload.get("items"), price_field="price")
        header = parse_document_header(
            model=Invoice,
            payload=payload,
            fields=INVOICE_TEXT_FIELDS + INVOICE_DATE_FIELDS,
        )
        tax_config = parse_tax_config(payload, include_transport=True)
        adjusted_total = parse_adjusted_total(payload.get("adjusted_total"))

        invoice = invoice_service.create_invoice(
            user_id=g.current_user.id,
            items=items,
            header=header,
            tax_config=tax_config,
            adjusted_total=adjusted_total,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ProductNotFoundError as e:
        return {"error": str(e), "details": {"product_ids": e.product_ids}}, 404
    except InsufficientStockError as e:
        return {"error": str(e), "details": {"items": e.items}}, 400
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return {"error": "Internal server error"}, 500

    return invoice.to_dict(), 201


@invoices_bp.patch("/<int:invoice_id>/status")
@require_auth
def update_invoice_status_route(invoice_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        status = parse_status(payload.get("status"), DOCUMENT_STATUSES)
        invoice = invoice_service.update_invoice_status(
            invoice_id=invoice_id,
            user=g.current_user,
            status=status,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except InvoiceNotFoundError as e:
        return {"error": str(e)}, 404

    return invoice.to_dict()


@invoices_bp.delete("/<int:invoice_id>")
@require_auth
def delete_invoice_route(invoice_id: int):
    """Delete an invoice and restore the stock its lines consumed."""
    try:
        invoice_service.delete_invoice(invoice_id=invoice_id, user=g.current_user)
    except InvoiceNotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete invoice id=%s", invoice_id)
        return {"error": "Internal server error"}, 500

    return {"message": "Invoice deleted successfully"}, 200


@invoices_bp.get("/<int:invoice_id>/html")
@require_auth
def invoice_html_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id=invoice_id, user=g.current_user)
    except InvoiceNotFoundError as e:
        return {"error": str(e)}, 404
    return render_invoice_html(invoice), 200, {"Content-Type": "text/html; charset=utf-8"}


@invoices_bp.get("/<int:invoice_id>/pdf")
@require_auth
def invoice_pdf_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id=invoice_id, user=g.current_user)
    except InvoiceNotFoundError as e:
        return {"error": str(e)}, 404

    try:
        pdf = render_invoice_pdf(invoice)
    except DocumentRenderError:
        return {"error": PDF_ERROR}, 500

    return send_file(
        BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"invoice-{invoice.invoice_number}.pdf",
    )
