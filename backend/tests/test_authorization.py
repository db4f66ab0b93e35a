"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied admin-only operations (403)
- Admin role can perform privileged operations
"""

import pytest

from boutique.extensions import db
from boutique.models import User


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/user"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/users"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/customers"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("POST", "/api/sales/1/refund"),
            ("GET", "/api/promo-codes"),
            ("GET", "/api/promo-codes/validate?code=X"),
            ("GET", "/api/categories"),
            ("GET", "/api/expenses"),
            ("GET", "/api/dashboard/stats"),
            ("GET", "/api/reports/sales"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_is_rejected(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# CASHIER DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestCashierDeniedAdminOperations:
    """Cashier role cannot perform back-office operations."""

    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("GET", "/api/users", None),
            ("POST", "/api/users", {"username": "x", "password": "Password123!"}),
            ("POST", "/api/products", {"name": "X", "category": "Tops", "price": "1"}),
            ("DELETE", "/api/products/1", None),
            ("POST", "/api/products/generate-codes", {"count": 1}),
            ("POST", "/api/sales/1/refund", None),
            ("POST", "/api/sales/import", {"rows": []}),
            ("GET", "/api/promo-codes", None),
            ("POST", "/api/promo-codes", {"code": "X", "discount_type": "fixed", "value": "1"}),
            ("POST", "/api/categories", {"name": "Hats"}),
            ("GET", "/api/expenses", None),
            ("POST", "/api/expenses", {"category": "Rent", "amount": "100"}),
        ],
    )
    def test_denied(self, client, cashier_headers, method, path, body):
        kwargs = {"headers": cashier_headers}
        if body is not None:
            kwargs["json"] = body
        resp = getattr(client, method.lower())(path, **kwargs)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["error"] == "Permission denied"


# =============================================================================
# CASHIER ALLOWED FRONT-OF-HOUSE OPERATIONS
# =============================================================================


class TestCashierAllowed:

    @pytest.mark.parametrize(
        "path",
        [
            "/api/products",
            "/api/products/low-stock",
            "/api/customers",
            "/api/sales",
            "/api/sales/recent",
            "/api/categories",
            "/api/paper-sizes",
            "/api/dashboard/stats",
            "/api/reports/sales?period=week",
        ],
    )
    def test_reads(self, client, cashier_headers, path):
        assert client.get(path, headers=cashier_headers).status_code == 200

    def test_can_create_customer(self, client, cashier_headers):
        resp = client.post("/api/customers", json={"name": "Walk In"}, headers=cashier_headers)
        assert resp.status_code == 201


# =============================================================================
# ADMIN
# =============================================================================


class TestAdminAccess:

    def test_admin_lists_users(self, client, admin_headers, cashier_user):
        resp = client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200
        assert {u["username"] for u in resp.get_json()} == {"admin", "cashier"}

    def test_admin_creates_cashier(self, client, admin_headers):
        resp = client.post(
            "/api/users",
            json={"username": "zoe", "password": "Password123!", "role": "cashier"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["role"] == "cashier"

    def test_short_password_is_400(self, client, admin_headers):
        resp = client.post("/api/users", json={"username": "zoe", "password": "short"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_deactivating_user_kills_their_sessions(self, client, db_session, admin_headers, cashier_user, cashier_headers):
        assert client.get("/api/products", headers=cashier_headers).status_code == 200

        resp = client.patch(f"/api/users/{cashier_user.id}", json={"is_active": False}, headers=admin_headers)
        assert resp.status_code == 200

        assert client.get("/api/products", headers=cashier_headers).status_code == 401

    def test_admin_cannot_deactivate_self(self, client, admin_user, admin_headers):
        resp = client.patch(f"/api/users/{admin_user.id}", json={"is_active": False}, headers=admin_headers)
        assert resp.status_code == 400
        db.session.expire_all()
        assert db.session.get(User, admin_user.id).is_active is True
