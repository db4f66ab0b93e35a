"""
Expense routes, spreadsheet import and export.
"""

import io
from datetime import datetime
from decimal import Decimal

import openpyxl

from boutique.models import Expense


def test_create_expense_defaults(client, db_session, admin_headers, admin_user):
    resp = client.post("/api/expenses", json={"category": "Rent", "amount": "950"}, headers=admin_headers)

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["amount"] == "950.00"
    assert body["payment_method"] == "CASH"
    assert body["date"] is not None
    assert db_session.get(Expense, body["id"]).created_by == admin_user.id


def test_amount_must_be_positive(client, admin_headers):
    resp = client.post("/api/expenses", json={"category": "Rent", "amount": "0"}, headers=admin_headers)
    assert resp.status_code == 400


def test_list_filters_by_date_range(client, admin_headers):
    for day in ("2026-03-01", "2026-03-15", "2026-04-02"):
        client.post(
            "/api/expenses",
            json={"category": "Supplies", "amount": "10", "date": f"{day}T12:00:00Z"},
            headers=admin_headers,
        )

    resp = client.get("/api/expenses?start=2026-03-01&end=2026-03-31", headers=admin_headers)

    assert resp.status_code == 200
    assert [e["date"][:10] for e in resp.get_json()] == ["2026-03-15", "2026-03-01"]


def test_bad_range_is_400(client, admin_headers):
    assert client.get("/api/expenses?start=yesterday", headers=admin_headers).status_code == 400


def test_patch_and_delete(client, admin_headers):
    expense_id = client.post(
        "/api/expenses", json={"category": "Rent", "amount": "5"}, headers=admin_headers,
    ).get_json()["id"]

    resp = client.patch(f"/api/expenses/{expense_id}", json={"reference": "INV-7"}, headers=admin_headers)
    assert resp.get_json()["reference"] == "INV-7"

    assert client.delete(f"/api/expenses/{expense_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/expenses/{expense_id}", headers=admin_headers).status_code == 404


def test_cashier_has_no_access(client, cashier_headers):
    assert client.get("/api/expenses", headers=cashier_headers).status_code == 403


class TestImport:

    def test_import_skips_incomplete_rows(self, client, db_session, admin_headers):
        rows = [
            {"Date": "2026-05-01", "Category": "Utilities", "Amount": "120.5", "Payment Method": "card"},
            {"Category": "", "Amount": "10"},
            {"Category": "Misc", "Amount": "-4"},
            {"Category": "Misc", "Amount": "n/a"},
            {"Date": "not a date", "Category": "Cleaning", "Amount": "15"},
        ]

        resp = client.post("/api/expenses/import", json={"rows": rows}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["imported"] == 2
        assert resp.get_json()["errors"] is None
        imported = {e.category: e for e in db_session.query(Expense).all()}
        assert imported["Utilities"].amount == Decimal("120.50")
        assert imported["Utilities"].payment_method == "CARD"
        assert imported["Utilities"].date == datetime(2026, 5, 1)

    def test_import_xlsx_upload(self, client, db_session, admin_headers):
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["Date", "Category", "Amount", "Payment Method", "Reference", "Warehouse", "Description"])
        sheet.append([datetime(2026, 6, 2, 9, 30), "Stock", 300, "Transfer", "PO-12", "Main", "Autumn order"])
        sheet.append([None, None, None, None, None, None, None])
        buffer = io.BytesIO()
        workbook.save(buffer)

        resp = client.post(
            "/api/expenses/import",
            data={"file": (io.BytesIO(buffer.getvalue()), "expenses.xlsx")},
            content_type="multipart/form-data",
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.get_json()["imported"] == 1
        expense = db_session.query(Expense).one()
        assert expense.reference == "PO-12"
        assert expense.date == datetime(2026, 6, 2, 9, 30)

    def test_import_accepts_expenses_key(self, client, db_session, admin_headers):
        rows = [{"Date": "2026-05-02", "Category": "Rent", "Amount": "700"}]
        resp = client.post("/api/expenses/import", json={"expenses": rows}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["imported"] == 1

    def test_unsupported_upload_is_400(self, client, admin_headers):
        resp = client.post(
            "/api/expenses/import",
            data={"file": (io.BytesIO(b"whatever"), "expenses.txt")},
            content_type="multipart/form-data",
            headers=admin_headers,
        )
        assert resp.status_code == 400


def test_export_csv(client, admin_headers):
    client.post("/api/expenses", json={"category": "Rent", "amount": "950"}, headers=admin_headers)

    resp = client.get("/api/expenses/export?format=csv", headers=admin_headers)

    assert resp.status_code == 200
    text = resp.data.decode("utf-8-sig")
    assert text.splitlines()[0].startswith("Date,Category,Amount")
    assert "950.00" in text
    assert "attachment" in resp.headers["Content-Disposition"]
