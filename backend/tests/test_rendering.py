"""
Document rendering tests.

PDF generation is replaced with a stub so the tests do not depend on
WeasyPrint's native libraries; the HTML path is exercised for real.
"""

from decimal import Decimal

import pytest

from tradebook.services import rendering_service
from tradebook.services.rendering_service import amount_to_words


class TestAmountToWords:

    @pytest.mark.parametrize("amount,expected", [
        (0, "Zero Rupees"),
        (7, "Seven Rupees"),
        (15, "Fifteen Rupees"),
        (708, "Seven Hundred Eight Rupees"),
        (1180, "One Thousand One Hundred Eighty Rupees"),
        (Decimal("123456.50"), "One Lakh Twenty Three Thousand Four Hundred Fifty Six Rupees and Fifty Paise"),
        (Decimal("20000000"), "Two Crore Rupees"),
        (Decimal("99.99"), "Ninety Nine Rupees and Ninety Nine Paise"),
    ])
    def test_words(self, amount, expected):
        assert amount_to_words(amount) == expected


def _invoice(client, headers, product):
    return client.post(
        "/api/invoices",
        json={
            "items": [{"product_id": product.id, "quantity": 2, "hsn_code": "8536"}],
            "billed_to_name": "Acme Traders",
            "sgst_enabled": True,
            "cgst_enabled": True,
        },
        headers=headers,
    ).json


class TestInvoiceDocuments:

    def test_html(self, client, db_session, employee_headers, make_product):
        p = make_product(name="Switch Panel", stock=10, price="500")
        inv = _invoice(client, employee_headers, p)

        resp = client.get(f"/api/invoices/{inv['id']}/html", headers=employee_headers)
        assert resp.status_code == 200
        html = resp.get_data(as_text=True)
        assert "TAX INVOICE" in html
        assert inv["invoice_number"] in html
        assert "Acme Traders" in html
        assert "Switch Panel" in html
        assert "One Thousand One Hundred Eighty Rupees" in html

    def test_pdf(self, client, db_session, employee_headers, make_product, monkeypatch):
        monkeypatch.setattr(rendering_service, "html_to_pdf", lambda html: b"%PDF-1.7 stub")
        p = make_product(stock=10)
        inv = _invoice(client, employee_headers, p)

        resp = client.get(f"/api/invoices/{inv['id']}/pdf", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data == b"%PDF-1.7 stub"
        assert f"invoice-{inv['invoice_number']}.pdf" in resp.headers["Content-Disposition"]

    def test_pdf_failure(self, client, db_session, employee_headers, make_product, monkeypatch):
        def _boom(html):
            raise OSError("cairo missing")

        monkeypatch.setattr(rendering_service, "html_to_pdf", _boom)
        p = make_product(stock=10)
        inv = _invoice(client, employee_headers, p)

        resp = client.get(f"/api/invoices/{inv['id']}/pdf", headers=employee_headers)
        assert resp.status_code == 500
        assert resp.json["error"] == "Failed to generate PDF. Please try again later."

    def test_not_visible_to_other_employee(self, client, db_session, employee_headers, other_headers, make_product):
        p = make_product(stock=10)
        inv = _invoice(client, employee_headers, p)
        assert client.get(f"/api/invoices/{inv['id']}/html", headers=other_headers).status_code == 404


class TestPurchaseOrderDocuments:

    def test_html_and_pdf(self, client, db_session, employee_headers, make_product, monkeypatch):
        monkeypatch.setattr(rendering_service, "html_to_pdf", lambda html: b"%PDF-1.7 stub")
        p = make_product(name="Copper Wire", stock=0, cost="60")
        po = client.post(
            "/api/purchase-orders/form",
            json={
                "items": [{"product_id": p.id, "quantity": 10}],
                "supplier_name": "Northwind Supplies",
                "cgst_enabled": True, "sgst_enabled": True,
            },
            headers=employee_headers,
        ).json

        html = client.get(f"/api/purchase-orders/{po['id']}/html", headers=employee_headers).get_data(as_text=True)
        assert "PURCHASE ORDER" in html
        assert "Northwind Supplies" in html
        assert "Seven Hundred Eight Rupees" in html

        resp = client.get(f"/api/purchase-orders/{po['id']}/pdf", headers=employee_headers)
        assert resp.status_code == 200
        assert f"purchase-order-{po['order_number']}.pdf" in resp.headers["Content-Disposition"]
