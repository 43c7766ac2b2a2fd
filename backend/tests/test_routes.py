"""
HTTP API tests.

Verifies:
- Protected routes answer 401 without a live token
- Role checks answer 403 (customer on staff routes, staff on admin-only routes)
- Browse -> cart -> checkout -> track -> advance through the API
- Public menu hides unavailable products
- CSV downloads and the health endpoint
"""

import pytest

from bakerist.models import Order

from conftest import DELIVERY, auth_headers, get_auth_token, make_order, make_product


# =============================================================================
# AUTHENTICATION AND PERMISSIONS
# =============================================================================


class TestAccessControl:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/auth/me"),
            ("get", "/api/cart"),
            ("post", "/api/checkout"),
            ("get", "/api/orders"),
            ("get", "/api/orders/mine"),
            ("get", "/api/orders/ORD-20250120-0004"),
            ("post", "/api/orders/ORD-20250120-0004/advance"),
            ("get", "/api/products/admin"),
            ("get", "/api/admin/dashboard"),
            ("get", "/api/admin/staff"),
            ("get", "/api/admin/settings"),
            ("get", "/api/admin/exports/orders.csv"),
        ],
    )
    def test_requires_token(self, client, db_session, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.json["error"] == "Authentication required"

    def test_bad_token(self, client, db_session):
        response = client.get("/api/auth/me", headers=auth_headers("nope"))
        assert response.status_code == 401
        assert response.json["error"] == "Invalid or expired token"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/orders"),
            ("get", "/api/products/admin"),
            ("get", "/api/products/inventory"),
            ("get", "/api/admin/dashboard"),
            ("get", "/api/admin/staff"),
            ("get", "/api/admin/exports/orders.csv"),
        ],
    )
    def test_customer_forbidden(self, client, customer_headers, method, path):
        response = getattr(client, method)(path, headers=customer_headers)
        assert response.status_code == 403
        assert response.json["error"] == "Permission denied"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/staff"),
            ("get", "/api/admin/settings"),
            ("get", "/api/admin/delivery-zones"),
            ("get", "/api/cart"),
        ],
    )
    def test_staff_forbidden(self, client, staff_headers, method, path):
        response = getattr(client, method)(path, headers=staff_headers)
        assert response.status_code == 403
        assert "required_permission" in response.json

    def test_logout_without_token_is_ok(self, client, db_session):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200

    def test_logout_revokes_token(self, client, customer):
        token = get_auth_token(client, customer.email)
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_login_failure_is_generic(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer.email, "password": "wrong"})
        assert response.status_code == 401
        assert response.json["error"] == "Invalid email or password"

    def test_register_duplicate_is_conflict(self, client, customer):
        response = client.post("/api/auth/register", json={
            "name": "Juan Again",
            "email": customer.email,
            "password": "secret123",
            "confirm_password": "secret123",
            "contact_no": "09171234567",
        })
        assert response.status_code == 409
        assert response.json["field"] == "email"


# =============================================================================
# STOREFRONT FLOW
# =============================================================================


class TestStorefrontFlow:
    def test_register_to_delivery(self, client, db_session, staff_headers, pandesal, ensaymada, zones, store_settings):
        response = client.post("/api/auth/register", json={
            "name": "Juan dela Cruz",
            "email": "juan@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
            "contact_no": "09171234567",
            "barangay": "Anilao",
            "sitio": "Sitio Maliksi",
        })
        assert response.status_code == 201
        headers = auth_headers(response.json["token"])

        assert client.post("/api/cart/items", json={"product_id": pandesal.id, "quantity": 12}, headers=headers).status_code == 201
        cart = client.post("/api/cart/items", json={"product_id": ensaymada.id, "quantity": 4}, headers=headers).json
        assert cart["subtotal_cents"] == 19_600
        assert cart["item_count"] == 16

        quote = client.get("/api/checkout/quote?barangay=Anilao", headers=headers).json
        assert quote["total_cents"] == 22_600

        response = client.post("/api/checkout", json={
            "delivery": DELIVERY,
            "payment_method": "COD",
        }, headers=headers)
        assert response.status_code == 201
        order = response.json["order"]
        assert order["id"].startswith("ORD-")
        assert order["id"].endswith("-0004")
        assert order["total_cents"] == 22_600
        assert order["payment_status"] == "Pending"

        assert client.get("/api/cart", headers=headers).json["items"] == []

        tracked = client.get(f"/api/orders/track/{order['id']}")
        assert tracked.status_code == 200
        assert tracked.json["order"]["tracking_status"] == "To Prepare"

        for expected in ("Out for Delivery", "Delivered", "Delivered"):
            advanced = client.post(f"/api/orders/{order['id']}/advance", headers=staff_headers)
            assert advanced.status_code == 200
            assert advanced.json["tracking_status"] == expected
        assert advanced.json["payment_status"] == "Paid"

        mine = client.get("/api/orders/mine", headers=headers).json
        assert [o["id"] for o in mine["items"]] == [order["id"]]

        receipt = client.get(f"/api/orders/{order['id']}/receipt", headers=headers)
        assert receipt.status_code == 200
        assert receipt.json["totals_display"]["total"] == "₱226.00"

    def test_checkout_insufficient_stock_is_conflict(self, client, customer_headers, ube_cake, db_session):
        client.post("/api/cart/items", json={"product_id": ube_cake.id, "quantity": 8}, headers=customer_headers)
        ube_cake.stock = 2
        db_session.commit()

        response = client.post("/api/checkout", json={
            "delivery": DELIVERY,
            "payment_method": "GCash",
            "payment_details": {"gcash_number": "09171234567"},
        }, headers=customer_headers)

        assert response.status_code == 409
        assert response.json["details"]["on_hand"] == 2
        assert db_session.query(Order).count() == 0

    def test_checkout_empty_cart(self, client, customer_headers):
        response = client.post("/api/checkout", json={"delivery": DELIVERY, "payment_method": "COD"}, headers=customer_headers)
        assert response.status_code == 400
        assert response.json["field"] == "cart"

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"delivery": {**DELIVERY, "contact": 9171234567}, "payment_method": "COD"}, "contact"),
            ({"delivery": DELIVERY, "payment_method": "GCash", "payment_details": {"gcash_number": 9171234567}}, "gcash_number"),
            ({"delivery": "Anilao", "payment_method": "COD"}, "delivery"),
        ],
    )
    def test_checkout_malformed_input_is_bad_request(self, client, customer_headers, pandesal, body, field):
        client.post("/api/cart/items", json={"product_id": pandesal.id, "quantity": 2}, headers=customer_headers)
        response = client.post("/api/checkout", json=body, headers=customer_headers)
        assert response.status_code == 400
        assert response.json["field"] == field

    def test_add_over_stock_is_conflict(self, client, customer_headers, ube_cake):
        response = client.post("/api/cart/items", json={"product_id": ube_cake.id, "quantity": 9}, headers=customer_headers)
        assert response.status_code == 409
        assert response.json["error"] == "Only 8 Ube Cake available in stock"

    def test_track_unknown_order(self, client, db_session):
        response = client.get("/api/orders/track/ORD-20990101-0001")
        assert response.status_code == 404
        assert response.json["error"] == "Order not found. Please check your order number."

    def test_other_customers_order_hidden(self, client, db_session, customer_headers, admin):
        make_order(db_session, admin, order_id="ORD-20250120-0009")
        response = client.get("/api/orders/ORD-20250120-0009", headers=customer_headers)
        assert response.status_code == 404

    def test_reorder(self, client, db_session, customer, customer_headers, pandesal):
        make_order(db_session, customer, items=((pandesal, 6),))
        response = client.post("/api/cart/reorder/ORD-20250120-0004", headers=customer_headers)
        assert response.status_code == 200
        assert response.json["added"] == [{"product_id": pandesal.id, "name": "Pandesal Classic", "qty": 6}]
        assert response.json["subtotal_cents"] == 4_800


# =============================================================================
# CATALOG AND ADMIN
# =============================================================================


class TestCatalogRoutes:
    def test_public_menu_hides_unavailable(self, client, db_session, pandesal):
        hidden = make_product(db_session, name="Hopia Baboy", price_cents=1800, stock=3, available=False)

        names = [p["name"] for p in client.get("/api/products").json["items"]]
        assert names == ["Pandesal Classic"]
        assert client.get(f"/api/products/{hidden.id}").status_code == 404

    def test_unknown_sort(self, client, db_session):
        assert client.get("/api/products?sort=random").status_code == 400

    def test_staff_restock_and_toggle(self, client, staff_headers, ube_cake):
        response = client.post(f"/api/products/{ube_cake.id}/restock", json={"amount": 12}, headers=staff_headers)
        assert response.status_code == 200
        assert response.json["stock"] == 20
        assert response.json["stock_status"] == "InStock"

        response = client.post(f"/api/products/{ube_cake.id}/toggle-availability", headers=staff_headers)
        assert response.json["available"] is False

    def test_create_product_rejects_unknown_field(self, client, staff_headers):
        response = client.post("/api/products", json={
            "name": "Cheese Roll", "category": "Breads", "price_cents": 1500, "sku": "CR-1",
        }, headers=staff_headers)
        assert response.status_code == 400
        assert response.json["field"] == "sku"


class TestAdminRoutes:
    def test_orders_csv_download(self, client, db_session, customer, admin_headers):
        make_order(db_session, customer)
        response = client.get("/api/admin/exports/orders.csv", headers=admin_headers)

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]
        assert response.get_data(as_text=True).endswith("To Prepare,GCash,Paid,2025-01-20T09:15:00.000Z")

    def test_settings_patch(self, client, admin_headers, store_settings):
        response = client.patch("/api/admin/settings", json={"store_name": "Mabini Bakery"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json["store_name"] == "Mabini Bakery"
        assert response.json["next_order_number"] == 4

    def test_admin_cannot_deactivate_self(self, client, admin, admin_headers):
        response = client.post(f"/api/admin/staff/{admin.id}/deactivate", headers=admin_headers)
        assert response.status_code == 409

    def test_create_staff(self, client, admin_headers):
        response = client.post("/api/admin/staff", json={
            "name": "Ana Reyes", "email": "ana@bakerist.local", "password": "secret123",
        }, headers=admin_headers)
        assert response.status_code == 201
        assert response.json["role"] == "staff"


# =============================================================================
# HEALTH
# =============================================================================


class TestHealth:
    def test_healthy(self, client, store_settings):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json["status"] == "healthy"

    def test_degraded_without_settings(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json["status"] == "degraded"
