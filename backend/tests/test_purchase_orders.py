"""
Purchase order API tests.

Verifies:
- Minimal form bills at product cost; expanded form takes rate/discount/taxes
- Creation increments stock; deletion takes it back out (even below zero)
- Ownership scoping mirrors invoices
"""

import re

import pytest

from tradebook.models import PurchaseOrder, StockMovement

from conftest import current_stock


class TestMinimalForm:

    def test_billed_at_cost_and_stock_increases(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=20, price="100", cost="60")

        resp = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 10}]},
            headers=employee_headers,
        )
        assert resp.status_code == 201
        body = resp.json
        assert re.fullmatch(r"PO-\d{13}-\d+", body["order_number"])
        assert body["items"][0]["cost"] == 60
        assert body["total_amount"] == 600
        assert body["net_amount"] == 600
        assert body["sgst_enabled"] is False
        assert current_stock(db_session, p.id) == 30

    def test_rate_is_ignored(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0, cost="60")
        resp = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 1, "rate": 10, "discount": 50}]},
            headers=employee_headers,
        )
        assert resp.json["items"][0]["cost"] == 60
        assert resp.json["total_amount"] == 60

    def test_unknown_product(self, client, db_session, employee_headers):
        resp = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": 9999, "quantity": 1}]},
            headers=employee_headers,
        )
        assert resp.status_code == 404
        assert db_session.query(PurchaseOrder).count() == 0

    def test_quantity_beyond_integer_range(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0)
        resp = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 10**20}]},
            headers=employee_headers,
        )
        assert resp.status_code == 400
        assert "quantity" in resp.json["error"]
        assert current_stock(db_session, p.id) == 0

    def test_empty_items(self, client, db_session, employee_headers):
        resp = client.post("/api/purchase-orders", json={"items": []}, headers=employee_headers)
        assert resp.status_code == 400


class TestExpandedForm:

    def test_gst_split(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=5, cost="60")

        resp = client.post(
            "/api/purchase-orders/form",
            json={
                "items": [{"product_id": p.id, "quantity": 10, "rate": 60}],
                "discount_enabled": False,
                "cgst_enabled": True, "cgst_rate": 9,
                "sgst_enabled": True, "sgst_rate": 9,
                "supplier_name": "Northwind Supplies",
                "po_date": "2026-10-18",
            },
            headers=employee_headers,
        )
        assert resp.status_code == 201
        body = resp.json
        assert body["total_amount"] == 600
        assert body["cgst_amount"] == 54
        assert body["sgst_amount"] == 54
        assert body["net_amount"] == 708
        assert body["supplier_name"] == "Northwind Supplies"
        assert body["po_date"] == "2026-10-18"
        assert "transport_amount" not in body
        assert current_stock(db_session, p.id) == 15

    def test_line_and_aggregate_discounts_both_apply(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0, cost="100")

        resp = client.post(
            "/api/purchase-orders/form",
            json={
                "items": [{"product_id": p.id, "quantity": 2, "rate": 50, "discount": 10}],
                "discount_enabled": True, "discount_rate": 10,
            },
            headers=employee_headers,
        )
        body = resp.json
        # 2 * 50 = 100, less 10% on the line = 90, less 10% overall = 81
        assert body["items"][0]["subtotal"] == 90
        assert body["items"][0]["discount"] == 10
        assert body["total_amount"] == 90
        assert body["discount_amount"] == 9
        assert body["net_amount"] == 81

    def test_net_floors_to_cents(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0, cost="99.99")
        resp = client.post(
            "/api/purchase-orders/form",
            json={
                "items": [{"product_id": p.id, "quantity": 1}],
                "sgst_enabled": True, "cgst_enabled": True,
            },
            headers=employee_headers,
        )
        assert resp.json["net_amount"] == pytest.approx(117.98)

    @pytest.mark.parametrize("item", [
        {"quantity": 10**20},
        {"quantity": 1, "rate": "10000000000"},
        {"quantity": 1, "discount": "100000"},
    ])
    def test_oversized_line_values_rejected(self, client, db_session, employee_headers, make_product, item):
        p = make_product(stock=3)
        resp = client.post(
            "/api/purchase-orders/form",
            json={"items": [{"product_id": p.id, **item}]},
            headers=employee_headers,
        )
        assert resp.status_code == 400
        assert "cannot exceed" in resp.json["error"]
        assert current_stock(db_session, p.id) == 3
        assert db_session.query(PurchaseOrder).count() == 0

    def test_invalid_flag(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0)
        resp = client.post(
            "/api/purchase-orders/form",
            json={"items": [{"product_id": p.id, "quantity": 1}], "sgst_enabled": [True]},
            headers=employee_headers,
        )
        assert resp.status_code == 400
        assert current_stock(db_session, p.id) == 0


class TestPurchaseOrderDeletion:

    def test_create_then_delete_restores_stock(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=7)
        po = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 3}]},
            headers=employee_headers,
        ).json
        assert current_stock(db_session, p.id) == 10

        resp = client.delete(f"/api/purchase-orders/{po['id']}", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["message"] == "Purchase order deleted successfully"
        assert current_stock(db_session, p.id) == 7

    def test_delete_after_goods_sold_goes_negative(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0)
        po = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 10}]},
            headers=employee_headers,
        ).json
        client.post(
            "/api/invoices",
            json={"items": [{"product_id": p.id, "quantity": 8}]},
            headers=employee_headers,
        )
        assert current_stock(db_session, p.id) == 2

        resp = client.delete(f"/api/purchase-orders/{po['id']}", headers=employee_headers)
        assert resp.status_code == 200
        assert current_stock(db_session, p.id) == -8

        reasons = [m.reason for m in db_session.query(StockMovement).order_by(StockMovement.id)]
        assert reasons == ["purchase_order.created", "invoice.created", "purchase_order.deleted"]


class TestPurchaseOrderOwnership:

    def test_other_employee_gets_404(self, client, db_session, employee_headers, other_headers, make_product):
        p = make_product(stock=0)
        po = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 1}]},
            headers=employee_headers,
        ).json

        assert client.get(f"/api/purchase-orders/{po['id']}", headers=other_headers).status_code == 404
        resp = client.patch(
            f"/api/purchase-orders/{po['id']}/status",
            json={"status": "cancelled"},
            headers=other_headers,
        )
        assert resp.status_code == 404
        assert client.get("/api/purchase-orders", headers=other_headers).json["count"] == 0

    def test_status_update(self, client, db_session, employee_headers, make_product):
        p = make_product(stock=0)
        po = client.post(
            "/api/purchase-orders",
            json={"items": [{"product_id": p.id, "quantity": 1}]},
            headers=employee_headers,
        ).json

        resp = client.patch(
            f"/api/purchase-orders/{po['id']}/status",
            json={"status": "Completed"},
            headers=employee_headers,
        )
        assert resp.status_code == 200
        assert resp.json["status"] == "completed"
        assert current_stock(db_session, p.id) == 1
