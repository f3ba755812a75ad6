# Overview: HTML and PDF renderings of invoices and purchase orders.

"""
Document Rendering

HTML comes from Jinja2 templates (templates/documents/*.html); PDF bytes are
produced from that HTML by WeasyPrint. Rendering only reads the stored
document: a failure here never changes the invoice or purchase order.
"""

from __future__ import annotations

import base64
import mimetypes
import os
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app, render_template

from ..models import Invoice, PurchaseOrder
from ..money_utils import ZERO, to_decimal

_ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
_TEENS = [
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen",
    "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen",
]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

# Indian numbering: thousand, lakh (1,00,000), crore (1,00,00,000)
_SCALES = [
    (10_000_000, "Crore"),
    (100_000, "Lakh"),
    (1_000, "Thousand"),
    (100, "Hundred"),
]


class DocumentRenderError(Exception):
    """Raised when a document cannot be rendered to PDF."""


def _number_to_words(n: int) -> str:
    if n == 0:
        return ""
    if n < 10:
        return _ONES[n]
    if n < 20:
        return _TEENS[n - 10]
    if n < 100:
        return _TENS[n // 10] + (" " + _ONES[n % 10] if n % 10 else "")
    for size, label in _SCALES:
        if n >= size:
            head = _ONES[n // size] if size == 100 else _number_to_words(n // size)
            rest = n % size
            return f"{head} {label}" + (" " + _number_to_words(rest) if rest else "")
    return ""


def amount_to_words(amount) -> str:
    """
    Spell out an amount in rupees and paise, e.g.
    1,23,456.50 -> "One Lakh Twenty Three Thousand Four Hundred Fifty Six Rupees and Fifty Paise".
    """
    value = abs(to_decimal(amount) or ZERO)
    rupees = int(value)
    paise = int(((value - rupees) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if paise == 100:
        rupees, paise = rupees + 1, 0

    words = (_number_to_words(rupees) or "Zero") + " Rupees"
    if paise:
        words += " and " + _number_to_words(paise) + " Paise"
    return words


def _logo_data_uri(path: str) -> str:
    """Embed the letterhead logo so the PDF does not depend on file URLs."""
    if not path:
        return ""
    if not os.path.isabs(path):
        path = os.path.join(current_app.root_path, path)
    if not os.path.exists(path):
        current_app.logger.warning("Letterhead logo not found: %s", path)
        return ""
    mime = mimetypes.guess_type(path)[0] or "image/png"
    with open(path, "rb") as fh:
        encoded = base64.b64encode(fh.read()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _letterhead() -> dict:
    letterhead = dict(current_app.config.get("LETTERHEAD") or {})
    letterhead["logo"] = _logo_data_uri(letterhead.get("logo_path", ""))
    return letterhead


def render_invoice_html(invoice: Invoice) -> str:
    return render_template(
        "documents/invoice.html",
        invoice=invoice,
        letterhead=_letterhead(),
        amount_in_words=amount_to_words(invoice.net_amount),
    )


def render_purchase_order_html(purchase_order: PurchaseOrder) -> str:
    return render_template(
        "documents/purchase_order.html",
        order=purchase_order,
        letterhead=_letterhead(),
        amount_in_words=amount_to_words(purchase_order.net_amount),
    )


def html_to_pdf(html: str) -> bytes:
    """A4 PDF bytes for an HTML document."""
    from weasyprint import HTML

    return HTML(string=html, base_url=current_app.root_path).write_pdf()


def _render_pdf(html: str, label: str) -> bytes:
    try:
        return html_to_pdf(html)
    except Exception as exc:
        current_app.logger.exception("PDF rendering failed for %s", label)
        raise DocumentRenderError(f"Failed to render {label}") from exc


def render_invoice_pdf(invoice: Invoice) -> bytes:
    return _render_pdf(render_invoice_html(invoice), f"invoice {invoice.invoice_number}")


def render_purchase_order_pdf(purchase_order: PurchaseOrder) -> bytes:
    return _render_pdf(
        render_purchase_order_html(purchase_order),
        f"purchase order {purchase_order.order_number}",
    )
