"""
Invoice API tests.

Verifies:
- Creation decrements stock and stores totals; deletion restores stock
- Insufficient stock rejects the whole invoice with nothing written
- Employees only see their own invoices (others answer 404)
- Input validation and status updates
"""

import re
from decimal import Decimal

import pytest

from tradebook.models import Invoice, StockMovement

from conftest import current_stock


def _create(client, headers, **payload):
    return client.post("/api/invoices", json=payload, headers=headers)


# =============================================================================
# CREATE / DELETE
# =============================================================================


class TestInvoiceLifecycle:

    def test_create_decrements_stock_and_delete_restores_it(
        self, client, db_session, employee_headers, make_product,
    ):
        p = make_product(stock=20, price="100", cost="60")

        resp = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 5}])
        assert resp.status_code == 201
        body = resp.json
        assert body["total_amount"] == 500
        assert body["net_amount"] == 500
        assert body["status"] == "pending"
        assert body["items"][0]["price"] == 100
        assert body["items"][0]["subtotal"] == 500
        assert current_stock(db_session, p.id) == 15

        resp = client.delete(f"/api/invoices/{body['id']}", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["message"] == "Invoice deleted successfully"
        assert current_stock(db_session, p.id) == 20
        assert db_session.query(Invoice).count() == 0

    def test_movements_survive_deletion(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10)
        inv = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 3}]).json
        client.delete(f"/api/invoices/{inv['id']}", headers=employee_headers)

        reasons = [
            (m.reason, m.quantity_delta, m.document_number)
            for m in db_session.query(StockMovement).order_by(StockMovement.id)
        ]
        assert reasons == [
            ("invoice.created", -3, inv["invoice_number"]),
            ("invoice.deleted", 3, inv["invoice_number"]),
        ]

    def test_number_format_and_uniqueness(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=100)
        numbers = [
            _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 1}]).json["invoice_number"]
            for _ in range(3)
        ]
        for number in numbers:
            assert re.fullmatch(r"INV-\d{13}-\d+", number)
        assert len(set(numbers)) == 3

    def test_price_override_and_line_defaults(self, client, db_session, employee_headers, make_product):
        p = make_product(name="Bolt", stock=10, price="100", unit="box")

        resp = _create(client, employee_headers, items=[
            {"product_id": p.id, "quantity": 2, "price": 80, "hsn_code": "7318"},
        ])
        item = resp.json["items"][0]
        assert item["price"] == 80
        assert item["subtotal"] == 160
        assert item["description"] == "Bolt"
        assert item["per"] == "box"
        assert item["hsn_code"] == "7318"

    def test_zero_price_falls_back_to_catalog(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10, price="45")
        resp = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 1, "price": 0}])
        assert resp.json["items"][0]["price"] == 45

    def test_taxes_transport_and_header(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10, price="1000")

        resp = _create(
            client, employee_headers,
            items=[{"product_id": p.id, "quantity": 1}],
            discount_enabled=True, discount_rate=10,
            transport_enabled="true", transport_amount="100",
            sgst_enabled=True, cgst_enabled=True,
            billed_to_name="Acme Traders",
            billed_to_gstin="27AAACA1234A1Z5",
            tax_inv_date="2026-10-01",
        )
        assert resp.status_code == 201
        body = resp.json
        # (1000 - 100 + 100) * 1.18
        assert body["discount_amount"] == 100
        assert body["transport_amount"] == 100
        assert body["sgst_amount"] == 90
        assert body["cgst_amount"] == 90
        assert body["net_amount"] == 1180
        assert body["billed_to_name"] == "Acme Traders"
        assert body["tax_inv_date"] == "2026-10-01"

    def test_adjusted_total_overrides_net(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10, price="999.99")
        resp = _create(
            client, employee_headers,
            items=[{"product_id": p.id, "quantity": 1}],
            adjusted_total=950,
        )
        assert resp.json["net_amount"] == 950
        assert resp.json["total_amount"] == 999.99

    def test_adjusted_total_with_cents_is_stored_exactly(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10, price="120")
        resp = _create(
            client, employee_headers,
            items=[{"product_id": p.id, "quantity": 1}],
            adjusted_total="99.99",
        )
        assert resp.status_code == 201
        assert resp.json["net_amount"] == 99.99
        assert db_session.get(Invoice, resp.json["id"]).net_amount == Decimal("99.99")


# =============================================================================
# STOCK SUFFICIENCY
# =============================================================================


class TestInsufficientStock:

    def test_rejected_without_side_effects(self, client, db_session, employee_headers, make_product):
        p = make_product(name="Scarce", stock=5)

        resp = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 6}])
        assert resp.status_code == 400
        assert resp.json["details"]["items"] == [
            {"product_id": p.id, "product_name": "Scarce", "requested": 6, "available": 5},
        ]
        assert current_stock(db_session, p.id) == 5
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(StockMovement).count() == 0

    def test_one_short_line_rejects_all_lines(self, client, db_session, employee_headers, make_product):
        plenty = make_product(name="Plenty", stock=50)
        scarce = make_product(name="Scarce", stock=1)

        resp = _create(client, employee_headers, items=[
            {"product_id": plenty.id, "quantity": 10},
            {"product_id": scarce.id, "quantity": 2},
        ])
        assert resp.status_code == 400
        assert current_stock(db_session, plenty.id) == 50

    def test_repeated_product_cannot_jointly_overdraw(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=5)

        resp = _create(client, employee_headers, items=[
            {"product_id": p.id, "quantity": 3},
            {"product_id": p.id, "quantity": 3},
        ])
        assert resp.status_code == 400
        assert current_stock(db_session, p.id) == 5
        assert db_session.query(Invoice).count() == 0

    def test_unknown_product(self, client, db_session, employee_headers):
        resp = _create(client, employee_headers, items=[{"product_id": 4242, "quantity": 1}])
        assert resp.status_code == 404
        assert resp.json["details"]["product_ids"] == [4242]


# =============================================================================
# VALIDATION
# =============================================================================


class TestInvoiceValidation:

    @pytest.mark.parametrize("payload", [
        {},
        {"items": []},
        {"items": "nope"},
        {"items": [{"product_id": 1}]},
        {"items": [{"product_id": 1, "quantity": 0}]},
        {"items": [{"product_id": 1, "quantity": 1.5}]},
        {"items": [{"product_id": 1, "quantity": 10**20}]},
        {"items": [{"product_id": 1, "quantity": 1, "price": "10000000000"}]},
        {"items": [{"product_id": 1, "quantity": 1}], "adjusted_total": "99.999"},
        {"items": [{"product_id": 1, "quantity": 1}], "adjusted_total": 10**15},
        {"items": [{"product_id": 1, "quantity": 1, "price": -3}]},
        {"items": [{"product_id": 1, "quantity": 1}], "adjusted_total": "lots"},
        {"items": [{"product_id": 1, "quantity": 1}], "tax_inv_date": "yesterday"},
        {"items": [{"product_id": 1, "quantity": 1}], "igst_enabled": "sometimes"},
    ])
    def test_rejected(self, client, db_session, employee_headers, make_product, payload):
        make_product(stock=10)
        resp = client.post("/api/invoices", json=payload, headers=employee_headers)
        assert resp.status_code == 400
        assert "error" in resp.json

    def test_strict_mode_rejects_igst_with_cgst(self, app, client, db_session, employee_headers, make_product):
        p = make_product(stock=10)
        app.config["STRICT_TAX_VALIDATION"] = True

        resp = _create(
            client, employee_headers,
            items=[{"product_id": p.id, "quantity": 1}],
            igst_enabled=True, cgst_enabled=True,
        )
        assert resp.status_code == 400
        assert current_stock(db_session, p.id) == 10

    def test_permissive_mode_accepts_igst_with_cgst(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10, price="100")
        resp = _create(
            client, employee_headers,
            items=[{"product_id": p.id, "quantity": 1}],
            igst_enabled=True, cgst_enabled=True,
        )
        assert resp.status_code == 201
        assert resp.json["net_amount"] == 127


# =============================================================================
# OWNERSHIP AND STATUS
# =============================================================================


class TestInvoiceOwnership:

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/invoices").status_code == 401

    def test_employee_sees_only_own(
        self, client, db_session, employee_headers, other_headers, admin_headers, make_product,
    ):
        p = make_product(stock=10)
        mine = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 1}]).json
        theirs = _create(client, other_headers, items=[{"product_id": p.id, "quantity": 1}]).json

        listed = client.get("/api/invoices", headers=employee_headers).json
        assert [i["id"] for i in listed["items"]] == [mine["id"]]

        assert client.get(f"/api/invoices/{theirs['id']}", headers=employee_headers).status_code == 404
        assert client.delete(f"/api/invoices/{theirs['id']}", headers=employee_headers).status_code == 404
        assert current_stock(db_session, p.id) == 8

        all_ids = {i["id"] for i in client.get("/api/invoices", headers=admin_headers).json["items"]}
        assert all_ids == {mine["id"], theirs["id"]}

    def test_admin_can_delete_any(self, client, db_session, employee_headers, admin_headers, make_product):
        p = make_product(stock=10)
        inv = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 4}]).json

        assert client.delete(f"/api/invoices/{inv['id']}", headers=admin_headers).status_code == 200
        assert current_stock(db_session, p.id) == 10


class TestInvoiceStatus:

    def test_status_change_leaves_stock_alone(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10)
        inv = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 4}]).json

        resp = client.patch(
            f"/api/invoices/{inv['id']}/status",
            json={"status": "completed"},
            headers=employee_headers,
        )
        assert resp.status_code == 200
        assert resp.json["status"] == "completed"
        assert current_stock(db_session, p.id) == 6

    def test_unknown_status(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=10)
        inv = _create(client, employee_headers, items=[{"product_id": p.id, "quantity": 1}]).json

        resp = client.patch(
            f"/api/invoices/{inv['id']}/status",
            json={"status": "shipped"},
            headers=employee_headers,
        )
        assert resp.status_code == 400
