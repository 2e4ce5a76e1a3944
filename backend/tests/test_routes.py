"""
HTTP layer tests.

Verifies:
- Protected endpoints return 401 without the identity header
- Role-gated endpoints return 403 for the wrong role
- Ledger errors map to status codes and {"error", "kind"} bodies
- Happy paths return the documented payloads
"""

from decimal import Decimal

import pytest

from pizzapos.models import AuditLog, ProductAddon
from pizzapos.services import cash_register_service

from conftest import auth_headers, sale_payload


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without the identity header."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/cash-register"),
            ("GET", "/api/cash-register/summary"),
            ("POST", "/api/cash-register/open"),
            ("POST", "/api/cash-register/close"),
            ("POST", "/api/cash-register/extract"),
            ("GET", "/api/cash-tickets"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/sales/count-today"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/product-addons"),
            ("GET", "/api/clients"),
            ("GET", "/api/inventory"),
            ("POST", "/api/inventory/movements"),
            ("GET", "/api/config"),
            ("PUT", "/api/config"),
            ("GET", "/api/reports/cash"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
        ],
    )
    def test_requires_identity(self, client, db_session, method, path):
        response = client.open(path, method=method, json={})
        assert response.status_code == 401

    def test_unknown_user_is_unauthorized(self, client, db_session):
        response = client.get("/api/sales", headers={"X-Authenticated-User": "ghost"})
        assert response.status_code == 401

    def test_inactive_user_is_unauthorized(self, client, cashier, db_session):
        cashier.is_active = False
        db_session.commit()

        response = client.get("/api/sales", headers=auth_headers(cashier))
        assert response.status_code == 401


# =============================================================================
# ROLE CHECKS (403)
# =============================================================================


class TestRoleChecks:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/cash-register"),
            ("POST", "/api/cash-register/extract"),
            ("POST", "/api/products"),
            ("POST", "/api/product-addons"),
            ("POST", "/api/inventory"),
            ("GET", "/api/config"),
            ("GET", "/api/reports/cash"),
        ],
    )
    def test_cashier_is_forbidden(self, client, cashier, method, path):
        response = client.open(path, method=method, json={}, headers=auth_headers(cashier))

        assert response.status_code == 403
        assert response.get_json()["kind"] == "Forbidden"

    def test_admin_cannot_touch_config(self, client, admin):
        response = client.put("/api/config", json={"restaurantName": "X"}, headers=auth_headers(admin))
        assert response.status_code == 403


# =============================================================================
# CASH REGISTER ROUTES
# =============================================================================


class TestCashRegisterRoutes:

    def test_open_extract_close_flow(self, client, cashier, admin):
        response = client.post("/api/cash-register/open", json={"initialAmount": 50000},
                               headers=auth_headers(cashier))
        assert response.status_code == 200
        body = response.get_json()
        assert body["cash_register"]["is_open"] is True
        assert body["movement"]["type"] == "OPENING"

        response = client.post("/api/cash-register/extract", json={"amount": 20000},
                               headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.get_json()["cash_register"]["current_balance"] == 30000.0

        response = client.post("/api/cash-register/extract", json={"amount": 40000},
                               headers=auth_headers(admin))
        assert response.status_code == 400
        assert response.get_json()["kind"] == "InsufficientFunds"

        response = client.post("/api/cash-register/close", json={"finalAmount": 30000},
                               headers=auth_headers(cashier))
        assert response.status_code == 200
        body = response.get_json()
        assert body["cash_register"]["is_open"] is False
        assert body["cash_ticket"]["expected_amount"] == 30000.0
        assert body["cash_ticket"]["difference"] == 0.0

        response = client.get("/api/cash-tickets", headers=auth_headers(cashier))
        assert response.status_code == 200
        assert response.get_json()["pagination"]["total"] == 1

    def test_open_twice_is_invalid_state(self, client, cashier):
        client.post("/api/cash-register/open", json={"initialAmount": 1000}, headers=auth_headers(cashier))
        response = client.post("/api/cash-register/open", json={"initialAmount": 1000},
                               headers=auth_headers(cashier))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidState"

    def test_register_view_lists_movements(self, client, cashier, admin):
        cash_register_service.open_register(user_id=cashier.id, initial_amount=50000)

        response = client.get("/api/cash-register", headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.get_json()
        assert body["cash_register"]["current_balance"] == 50000.0
        assert [m["type"] for m in body["movements"]] == ["OPENING"]
        assert body["movements"][0]["user_name"] == "Cashier Test"

    def test_summary_is_available_to_cashier(self, client, cashier):
        response = client.get("/api/cash-register/summary", headers=auth_headers(cashier))

        assert response.status_code == 200
        assert response.get_json()["session_info"]["is_open"] is False


# =============================================================================
# SALES ROUTES
# =============================================================================


class TestSalesRoutes:

    def test_create_sale_requires_open_register(self, client, cashier, pizza):
        response = client.post("/api/sales", json=sale_payload(pizza), headers=auth_headers(cashier))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "RegisterClosed"

    def test_create_and_verify_sale(self, client, cashier, pizza):
        cash_register_service.open_register(user_id=cashier.id, initial_amount=0)

        response = client.post("/api/sales", json=sale_payload(pizza, quantity=2), headers=auth_headers(cashier))
        assert response.status_code == 201
        sale = response.get_json()["sale"]
        assert sale["total"] == 90000.0
        assert sale["items"][0]["product_name"] == "Pizza Muzzarella"

        # Verification is public: no identity header
        response = client.get(f"/api/sales/verify/{sale['order_number']}")
        assert response.status_code == 200
        assert response.get_json()["total"] == 90000.0

        response = client.get("/api/sales/count-today", headers=auth_headers(cashier))
        assert response.get_json() == {"count": 1}

        response = client.get("/api/sales", headers=auth_headers(cashier))
        assert response.get_json()["pagination"]["total"] == 1

    def test_verify_unknown_order_is_not_found(self, client, db_session):
        response = client.get("/api/sales/verify/01012026-999")

        assert response.status_code == 404
        assert response.get_json()["kind"] == "NotFound"

    def test_bad_payload_is_invalid_input(self, client, cashier):
        response = client.post("/api/sales", data="not json", headers=auth_headers(cashier))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    def test_bad_date_filter(self, client, cashier):
        response = client.get("/api/sales?startDate=yesterday&endDate=today", headers=auth_headers(cashier))
        assert response.status_code == 400


# =============================================================================
# CATALOG, INVENTORY, CONFIG, REPORTS
# =============================================================================


class TestCatalogRoutes:

    def test_admin_creates_product_and_cashier_lists_it(self, client, admin, cashier):
        response = client.post("/api/products", json={
            "name": "Pizza Pepperoni", "price": 55000, "category": "Pizzas",
        }, headers=auth_headers(admin))
        assert response.status_code == 201
        assert response.get_json()["product"]["stock"] is None

        response = client.get("/api/products?search=pepper", headers=auth_headers(cashier))
        assert [p["name"] for p in response.get_json()["products"]] == ["Pizza Pepperoni"]

    def test_duplicate_client_cedula_is_rejected(self, client, cashier, customer):
        response = client.post("/api/clients", json={"name": "Otra", "cedula": customer.cedula},
                               headers=auth_headers(cashier))
        assert response.status_code == 400

    def test_addons_list_only_active(self, client, cashier, extra_cheese, db_session):
        db_session.add(ProductAddon(name="Aceitunas", price=Decimal("3000"), is_active=False))
        db_session.commit()

        response = client.get("/api/product-addons", headers=auth_headers(cashier))
        assert [a["name"] for a in response.get_json()["addons"]] == ["Extra queso"]


class TestInventoryRoutes:

    def test_movement_flow(self, client, admin, cashier):
        response = client.post("/api/inventory", json={
            "name": "Harina", "unit": "kg", "currentStock": 10, "minStock": 5,
        }, headers=auth_headers(admin))
        assert response.status_code == 201
        ingredient_id = response.get_json()["ingredient"]["id"]

        response = client.post("/api/inventory/movements", json={
            "ingredientId": ingredient_id, "type": "EXIT", "quantity": 6,
        }, headers=auth_headers(cashier))
        assert response.status_code == 201
        assert response.get_json()["ingredient"]["current_stock"] == 4.0

        response = client.get("/api/inventory?lowStock=true", headers=auth_headers(cashier))
        assert [i["name"] for i in response.get_json()["ingredients"]] == ["Harina"]

        response = client.post("/api/inventory/movements", json={
            "ingredientId": ingredient_id, "type": "EXIT", "quantity": 5,
        }, headers=auth_headers(cashier))
        assert response.status_code == 400


class TestConfigAndReports:

    def test_sysadmin_reads_and_updates_config(self, client, sysadmin):
        response = client.get("/api/config", headers=auth_headers(sysadmin))
        assert response.status_code == 200
        assert response.get_json()["config"]["restaurant_name"] == "Polipizza"

        response = client.put("/api/config", json={"restaurantName": "Pizzería Central"},
                              headers=auth_headers(sysadmin))
        assert response.status_code == 200
        assert response.get_json()["config"]["restaurant_name"] == "Pizzería Central"

    def test_cash_report_for_today(self, client, cashier, admin, pizza):
        cash_register_service.open_register(user_id=cashier.id, initial_amount=10000)
        client.post("/api/sales", json=sale_payload(pizza), headers=auth_headers(cashier))

        response = client.get("/api/reports/cash", headers=auth_headers(admin))

        assert response.status_code == 200
        report = response.get_json()
        assert report["opening_balance"] == 10000.0
        assert report["total_sales"] == 45000.0
        assert report["closing_balance"] == 55000.0
        assert [m["type"] for m in report["movements"]] == ["OPENING", "SALE"]

    def test_health(self, client, db_session):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json()["checks"]["database"]["status"] == "healthy"


# =============================================================================
# OVERSIZED NUMBERS
# =============================================================================


class TestOversizedNumbers:
    """Numbers beyond what the columns hold are rejected as input errors, not 500s."""

    def test_huge_opening_amount(self, client, cashier):
        response = client.post("/api/cash-register/open", json={"initialAmount": 1e30},
                               headers=auth_headers(cashier))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    def test_huge_item_quantity(self, client, cashier, pizza):
        cash_register_service.open_register(user_id=cashier.id, initial_amount=0)
        payload = sale_payload(pizza)
        payload["items"][0]["quantity"] = 10**30

        response = client.post("/api/sales", json=payload, headers=auth_headers(cashier))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    def test_huge_ingredient_entry(self, client, admin):
        response = client.post("/api/inventory", json={"name": "Sal", "unit": "kg"}, headers=auth_headers(admin))
        ingredient_id = response.get_json()["ingredient"]["id"]

        response = client.post("/api/inventory/movements", json={
            "ingredientId": ingredient_id, "type": "ENTRY", "quantity": "999999999999",
        }, headers=auth_headers(admin))

        assert response.status_code == 400


# =============================================================================
# USERS
# =============================================================================


class TestUserRoutes:

    def test_sysadmin_creates_and_lists_users(self, client, sysadmin):
        response = client.post("/api/users", json={
            "username": "maria",
            "password": "Password123",
            "name": "María",
            "lastName": "González",
            "role": "admin",
        }, headers=auth_headers(sysadmin))

        assert response.status_code == 201
        user = response.get_json()["user"]
        assert user["role"] == "ADMIN"
        assert "password_hash" not in user

        entry = AuditLog.query.filter_by(action="CREATE_USER").one()
        assert entry.user_id == sysadmin.id
        assert entry.record_id == str(user["id"])

        response = client.get("/api/users", headers=auth_headers(sysadmin))
        assert response.status_code == 200
        assert {u["username"] for u in response.get_json()["users"]} == {"sysadmin", "maria"}

    def test_created_admin_can_extract(self, client, sysadmin, cashier):
        client.post("/api/users", json={
            "username": "jefe", "password": "Password123", "name": "Jefe", "role": "ADMIN",
        }, headers=auth_headers(sysadmin))
        cash_register_service.open_register(user_id=cashier.id, initial_amount=10000)

        response = client.post("/api/cash-register/extract", json={"amount": 5000},
                               headers={"X-Authenticated-User": "jefe"})

        assert response.status_code == 200

    @pytest.mark.parametrize("body", [
        {"username": "x", "password": "short", "name": "X"},
        {"username": "x", "password": "Password123"},
        {"username": "x", "password": "Password123", "name": "X", "role": "ROOT"},
        {"username": "sysadmin", "password": "Password123", "name": "Dup"},
        {"username": "x", "password": 12345678, "name": "X"},
    ])
    def test_invalid_user_payloads(self, client, sysadmin, body):
        response = client.post("/api/users", json=body, headers=auth_headers(sysadmin))

        assert response.status_code == 400
        assert response.get_json()["kind"] == "InvalidInput"

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_admin_cannot_manage_users(self, client, admin, method):
        response = client.open("/api/users", method=method, json={}, headers=auth_headers(admin))
        assert response.status_code == 403
