"""
Sales API: checkout, refund, history, import and export over HTTP.
"""

import io
from decimal import Decimal

import openpyxl

from boutique.extensions import db
from boutique.models import Sale, Product, Customer, SaleStatus

from conftest import item_payload


def _checkout_body(product, quantity=3, customer=None, **header):
    sale = {
        "customer_id": customer.id if customer else None,
        "subtotal": "60.00",
        "discount_amount": "0.00",
        "total": "60.00",
        "payment_method": "card",
        "points_used": 0,
        "points_earned": 0,
    }
    sale.update(header)
    return {"sale": sale, "items": [item_payload(product, quantity)]}


class TestCheckoutEndpoint:

    def test_cashier_can_check_out(self, client, db_session, cashier_user, cashier_headers, product, customer):
        resp = client.post(
            "/api/sales",
            json=_checkout_body(product, customer=customer, points_earned=5),
            headers=cashier_headers,
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "completed"
        assert body["total"] == "60.00"
        assert body["user_id"] == cashier_user.id
        assert body["refunded_at"] is None
        assert [i["quantity"] for i in body["items"]] == [3]

        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 7
        assert db_session.get(Customer, customer.id).points == 5

    def test_operator_is_forced_to_caller(self, client, db_session, admin_user, cashier_user, cashier_headers, product):
        body = _checkout_body(product)
        body["sale"]["user_id"] = admin_user.id
        resp = client.post("/api/sales", json=body, headers=cashier_headers)
        assert resp.status_code == 201
        assert resp.get_json()["user_id"] == cashier_user.id

    def test_missing_header_is_400(self, client, db_session, cashier_headers, product):
        resp = client.post("/api/sales", json={"items": [item_payload(product, 1)]}, headers=cashier_headers)
        assert resp.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_items_not_array_is_400(self, client, db_session, cashier_headers, product):
        body = _checkout_body(product)
        body["items"] = {"product_id": product.id}
        resp = client.post("/api/sales", json=body, headers=cashier_headers)
        assert resp.status_code == 400

    def test_empty_items_is_400(self, client, db_session, cashier_headers, product):
        body = _checkout_body(product)
        body["items"] = []
        resp = client.post("/api/sales", json=body, headers=cashier_headers)
        assert resp.status_code == 400
        assert db_session.query(Sale).count() == 0

    def test_malformed_amount_is_400(self, client, db_session, cashier_headers, product):
        resp = client.post("/api/sales", json=_checkout_body(product, total="lots"), headers=cashier_headers)
        assert resp.status_code == 400
        assert "total" in resp.get_json()["error"]


class TestRefundEndpoint:

    def test_admin_refund(self, client, db_session, admin_headers, product, customer, make_sale):
        sale = make_sale([item_payload(product, 3)], customer=customer, points_earned=5)

        resp = client.post(f"/api/sales/{sale.id}/refund", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "refunded"
        assert body["refunded_at"].endswith("Z")
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 10
        assert db_session.get(Customer, customer.id).points == 0

    def test_second_refund_is_400(self, client, db_session, admin_headers, product, make_sale):
        sale = make_sale([item_payload(product, 2)])
        assert client.post(f"/api/sales/{sale.id}/refund", headers=admin_headers).status_code == 200

        resp = client.post(f"/api/sales/{sale.id}/refund", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Sale already refunded"
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 10

    def test_unknown_sale_is_404(self, client, db_session, admin_headers):
        resp = client.post("/api/sales/4040/refund", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Sale not found"

    def test_itemless_sale_is_400(self, client, db_session, admin_headers, itemless_sale):
        resp = client.post(f"/api/sales/{itemless_sale.id}/refund", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "No sale items found for this sale"

    def test_cashier_cannot_refund(self, client, db_session, cashier_headers, product, make_sale):
        sale = make_sale([item_payload(product, 1)])
        resp = client.post(f"/api/sales/{sale.id}/refund", headers=cashier_headers)
        assert resp.status_code == 403
        db_session.expire_all()
        assert db_session.get(Sale, sale.id).status == SaleStatus.COMPLETED


class TestSaleReads:

    def test_detail_includes_items(self, client, db_session, cashier_headers, product, make_sale):
        sale = make_sale([item_payload(product, 2)])
        resp = client.get(f"/api/sales/{sale.id}", headers=cashier_headers)
        assert resp.status_code == 200
        items = resp.get_json()["items"]
        assert items[0]["product_name"] == product.name
        assert items[0]["unit_price"] == "20.00"
        assert items[0]["total_price"] == "40.00"

    def test_detail_unknown_is_404(self, client, db_session, cashier_headers):
        assert client.get("/api/sales/77", headers=cashier_headers).status_code == 404

    def test_recent_is_newest_first_and_limited(self, client, db_session, cashier_headers, product, make_sale):
        ids = [make_sale([item_payload(product, 1)]).id for _ in range(3)]
        resp = client.get("/api/sales/recent?limit=2", headers=cashier_headers)
        assert [s["id"] for s in resp.get_json()] == list(reversed(ids))[:2]

    def test_customer_sales(self, client, db_session, cashier_headers, product, customer, make_sale):
        mine = make_sale([item_payload(product, 1)], customer=customer)
        make_sale([item_payload(product, 1)])
        resp = client.get(f"/api/customers/{customer.id}/sales", headers=cashier_headers)
        assert [s["id"] for s in resp.get_json()] == [mine.id]


class TestSaleImport:

    def test_import_json_rows(self, client, db_session, admin_headers, product):
        rows = [
            {"Payment Method": "cash", "Subtotal": "30", "Discount": "5", "Total": "25",
             "Status": "completed", "Customer Name": "Nora Field"},
            {"Payment Method": "card", "Subtotal": "12.5", "Discount": "", "Total": "12.5",
             "Status": "refunded", "Customer Name": "nora field"},
            {"Payment Method": "", "Total": "10"},
            {"Payment Method": "cash", "Total": "0"},
            {"Payment Method": "cash", "Total": "abc"},
        ]
        resp = client.post("/api/sales/import", json={"rows": rows}, headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["imported"] == 2
        assert body["errors"] is None

        sales = db_session.query(Sale).order_by(Sale.id).all()
        assert [s.payment_method for s in sales] == ["CASH", "CARD"]
        assert sales[0].customer_id == sales[1].customer_id
        assert sales[1].status == SaleStatus.REFUNDED and sales[1].refunded_at is not None
        assert db_session.query(Customer).count() == 1
        db_session.expire_all()
        assert db_session.get(Product, product.id).stock == 10

    def test_import_unknown_status_is_reported(self, client, db_session, admin_headers):
        rows = [{"Payment Method": "cash", "Total": "10", "Status": "pending"}]
        body = client.post("/api/sales/import", json={"rows": rows}, headers=admin_headers).get_json()
        assert body["imported"] == 0
        assert "Unknown status" in body["errors"][0]

    def test_import_csv_upload(self, client, db_session, admin_headers):
        csv_bytes = b"Payment Method,Subtotal,Discount,Total,Status,Customer Name\ncash,10,0,10,completed,\n"
        resp = client.post(
            "/api/sales/import",
            data={"file": (io.BytesIO(csv_bytes), "sales.csv")},
            content_type="multipart/form-data",
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["imported"] == 1

    def test_import_requires_rows(self, client, db_session, admin_headers):
        resp = client.post("/api/sales/import", json={"rows": "nope"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_import_accepts_sales_key(self, client, db_session, admin_headers):
        rows = [
            {"Payment Method": "cash", "Subtotal": "10", "Discount": "0", "Total": "10",
             "Status": "completed", "Customer Name": ""},
            {"Payment Method": ""},
        ]
        resp = client.post("/api/sales/import", json={"sales": rows}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["imported"] == 1
        assert db_session.query(Sale).count() == 1

    def test_import_rejects_unrelated_columns(self, client, db_session, admin_headers):
        resp = client.post("/api/sales/import", json={"rows": [{"Category": "Rent", "Amount": "5"}]}, headers=admin_headers)
        assert resp.status_code == 400
        assert "Unrecognized columns" in resp.get_json()["error"]

    def test_cashier_cannot_import(self, client, db_session, cashier_headers):
        resp = client.post("/api/sales/import", json={"rows": []}, headers=cashier_headers)
        assert resp.status_code == 403


class TestSaleExport:

    def test_csv_export(self, client, db_session, cashier_headers, product, make_sale):
        make_sale([item_payload(product, 2)])
        resp = client.get("/api/sales/export?format=csv", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        lines = resp.data.decode("utf-8").strip().splitlines()
        assert lines[0].startswith("Sale ID,Date,Customer Name,Cashier,Payment Method")
        assert len(lines) == 2

    def test_xlsx_export(self, client, db_session, cashier_headers, product, make_sale):
        make_sale([item_payload(product, 1)])
        resp = client.get("/api/sales/export?format=xlsx", headers=cashier_headers)
        assert resp.status_code == 200
        sheet = openpyxl.load_workbook(io.BytesIO(resp.data)).active
        assert sheet.cell(row=1, column=1).value == "Sale ID"
        assert sheet.max_row == 2

    def test_pdf_export(self, client, db_session, cashier_headers, product, make_sale):
        make_sale([item_payload(product, 1)])
        resp = client.get("/api/sales/export?format=pdf", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")

    def test_unknown_format_is_400(self, client, db_session, cashier_headers):
        assert client.get("/api/sales/export?format=doc", headers=cashier_headers).status_code == 400


def test_list_sales_by_period(client, db_session, cashier_headers, product, make_sale):
    make_sale([item_payload(product, 1)])

    assert len(client.get("/api/sales?start=2020-01-01", headers=cashier_headers).get_json()) == 1
    assert client.get("/api/sales?start=2999-01-01", headers=cashier_headers).get_json() == []
    assert client.get("/api/sales?end=2020-01-01", headers=cashier_headers).get_json() == []
    assert client.get("/api/sales?start=soon", headers=cashier_headers).status_code == 400
