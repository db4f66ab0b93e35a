"""
Customer routes.
"""

from boutique.models import Customer

from conftest import item_payload


def test_create_and_get_customer(client, cashier_headers):
    resp = client.post(
        "/api/customers",
        json={"name": "  Maya Lind ", "email": "maya@example.com", "phone": ""},
        headers=cashier_headers,
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["name"] == "Maya Lind"
    assert body["phone"] is None
    assert body["points"] == 0

    resp = client.get(f"/api/customers/{body['id']}", headers=cashier_headers)
    assert resp.status_code == 200


def test_points_cannot_be_set_directly(client, cashier_headers, customer):
    resp = client.patch(f"/api/customers/{customer.id}", json={"points": 1000}, headers=cashier_headers)
    assert resp.status_code == 400


def test_name_is_required(client, cashier_headers):
    assert client.post("/api/customers", json={"email": "x@example.com"}, headers=cashier_headers).status_code == 400


def test_delete_customer_without_sales(client, db_session, cashier_headers, customer):
    assert client.delete(f"/api/customers/{customer.id}", headers=cashier_headers).status_code == 204
    assert db_session.get(Customer, customer.id) is None


def test_delete_customer_with_sales_is_409(client, cashier_headers, customer, product, make_sale):
    make_sale([item_payload(product, 1)], customer=customer)
    assert client.delete(f"/api/customers/{customer.id}", headers=cashier_headers).status_code == 409


def test_unknown_customer_is_404(client, cashier_headers):
    assert client.get("/api/customers/5555", headers=cashier_headers).status_code == 404
    assert client.get("/api/customers/5555/sales", headers=cashier_headers).status_code == 404
