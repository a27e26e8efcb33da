"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied admin operations (403)
- Admin role can perform privileged operations
- Login / logout / me round trip
"""

import pytest

from conftest import TEST_PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/me"),
            ("POST", "/api/logout"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/products"),
            ("GET", "/api/products/1"),
            ("GET", "/api/products/barcode/123"),
            ("POST", "/api/products"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales/1"),
            ("GET", "/api/inventory/history"),
            ("GET", "/api/dashboard"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["status"] == "error"

    def test_unknown_token_is_401(self, client, db_session):
        resp = client.get("/api/me", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_malformed_header_is_401(self, client, db_session):
        resp = client.get("/api/me", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401


# =============================================================================
# CASHIER DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestCashierDeniedAdmin:
    """Cashier role cannot perform privileged operations."""

    def test_cannot_list_users(self, client, cashier_headers):
        resp = client.get("/api/users", headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.json["message"] == "Admin access required"

    def test_cannot_create_user(self, client, cashier_headers):
        resp = client.post(
            "/api/users",
            json={"username": "x", "password": "P@ssw0rd123!"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_product(self, client, cashier_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Evil", "price": "1.00"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_delete_product(self, client, cashier_headers, make_product):
        product = make_product()
        resp = client.delete(f"/api/products/{product.id}", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_read_inventory_history(self, client, cashier_headers):
        resp = client.get("/api/inventory/history", headers=cashier_headers)
        assert resp.status_code == 403

    def test_can_read_catalog_and_sell(self, client, cashier_headers, make_product):
        product = make_product(quantity=5)
        assert client.get("/api/products", headers=cashier_headers).status_code == 200
        resp = client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 201


# =============================================================================
# ADMIN ALLOWED
# =============================================================================


class TestAdminAllowed:

    def test_can_list_users(self, client, admin_headers):
        resp = client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200
        assert any(u["username"] == "admin_t" for u in resp.json["data"])

    def test_can_read_inventory_history(self, client, admin_headers):
        resp = client.get("/api/inventory/history", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"] == []


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLoginFlow:

    def test_login_returns_token_and_user(self, client, cashier_user):
        resp = client.post("/api/login", json={"username": "cashier_t", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        data = resp.json["data"]
        assert len(data["token"]) == 64
        assert data["user"] == {
            "id": cashier_user.id,
            "username": "cashier_t",
            "display_name": "Casey Cashier",
            "role": "cashier",
        }
        assert "password_hash" not in data["user"]

    def test_login_missing_fields_is_400(self, client, db_session):
        resp = client.post("/api/login", json={"username": "someone"})
        assert resp.status_code == 400
        assert resp.json["message"] == "Username and password required"

    def test_login_wrong_password_is_401(self, client, cashier_user):
        resp = client.post("/api/login", json={"username": "cashier_t", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid credentials"

    def test_login_unknown_user_is_401(self, client, db_session):
        resp = client.post("/api/login", json={"username": "ghost", "password": TEST_PASSWORD})
        assert resp.status_code == 401

    def test_inactive_user_cannot_login(self, client, make_user):
        make_user("retired", is_active=False)
        resp = client.post("/api/login", json={"username": "retired", "password": TEST_PASSWORD})
        assert resp.status_code == 401

    def test_me_returns_session_identity(self, client, cashier_user):
        token = get_auth_token(client, "cashier_t")
        resp = client.get("/api/me", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.json["data"]["username"] == "cashier_t"
        assert resp.json["data"]["role"] == "cashier"

    def test_logout_revokes_token(self, client, cashier_user):
        token = get_auth_token(client, "cashier_t")
        headers = auth_headers(token)

        assert client.post("/api/logout", headers=headers).status_code == 200
        assert client.get("/api/me", headers=headers).status_code == 401

    def test_login_updates_last_login(self, client, db_session, cashier_user):
        assert cashier_user.last_login_at is None
        get_auth_token(client, "cashier_t")
        db_session.expire_all()
        assert cashier_user.last_login_at is not None
