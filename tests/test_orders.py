"""
Tests for the order endpoints and the admin order lifecycle.
"""

from pizza_api.models import Order, PizzaBase, PizzaSauce
from tests.conftest import login, make_user, order_payload


class TestPlaceOrder:

    def test_place_order(self, customer_client, seed_catalog, db_session):
        """Placing an order returns it with its items and drops stock."""
        response = customer_client.post("/api/orders", json=order_payload(seed_catalog, quantity=2))

        assert response.status_code == 201
        data = response.json()
        assert data["order"]["status"] == "pending"
        assert data["order"]["payment_status"] == "pending"
        assert len(data["items"]) == 1
        assert data["items"][0]["quantity"] == 2

        db_session.expire_all()
        assert db_session.get(PizzaBase, seed_catalog["base"].id).stock == 43

    def test_low_stock_items_in_response(self, customer_client, seed_catalog):
        """Marinara starts below its threshold and is reported."""
        response = customer_client.post("/api/orders", json=order_payload(seed_catalog))

        low = response.json()["low_stock_items"]
        assert any(i["kind"] == "sauce" and i["name"] == "Marinara" for i in low)
        assert not any(i["kind"] == "base" for i in low)

    def test_insufficient_stock_is_conflict(self, customer_client, seed_catalog, db_session):
        """Three thin crusts when two are left: 409 and nothing written."""
        response = customer_client.post(
            "/api/orders", json=order_payload(seed_catalog, quantity=3, base="thin", total=30.0)
        )

        assert response.status_code == 409
        assert "Thin Crust" in response.json()["message"]

        db_session.expire_all()
        assert db_session.query(Order).count() == 0
        assert db_session.get(PizzaBase, seed_catalog["thin"].id).stock == 2
        assert db_session.get(PizzaSauce, seed_catalog["sauce"].id).stock == 5

    def test_unknown_component_is_bad_request(self, customer_client, seed_catalog):
        payload = order_payload(seed_catalog)
        payload["items"][0]["pizza"]["topping_ids"] = [9999]

        response = customer_client.post("/api/orders", json=payload)

        assert response.status_code == 400

    def test_invalid_body_is_bad_request(self, customer_client, seed_catalog):
        payload = order_payload(seed_catalog)
        payload["items"] = []

        response = customer_client.post("/api/orders", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid request data"
        assert body["errors"]

    def test_short_delivery_address_rejected(self, customer_client, seed_catalog):
        payload = order_payload(seed_catalog)
        payload["delivery_address"] = "1 Elm St"

        response = customer_client.post("/api/orders", json=payload)

        assert response.status_code == 400
        assert any(e["field"] == "delivery_address" for e in response.json()["errors"])

    def test_blank_delivery_address_rejected(self, customer_client, seed_catalog):
        payload = order_payload(seed_catalog)
        payload["delivery_address"] = " " * 12

        response = customer_client.post("/api/orders", json=payload)

        assert response.status_code == 400
        assert any(e["field"] == "delivery_address" for e in response.json()["errors"])

    def test_delivery_address_is_trimmed(self, customer_client, seed_catalog, db_session):
        payload = order_payload(seed_catalog)
        payload["delivery_address"] = "   42 Main Street, Springfield  "

        order_id = customer_client.post("/api/orders", json=payload).json()["order"]["id"]

        assert db_session.get(Order, order_id).delivery_address == "42 Main Street, Springfield"

    def test_requires_session(self, client, seed_catalog):
        response = client.post("/api/orders", json=order_payload(seed_catalog))

        assert response.status_code == 401


class TestReadOrders:

    def test_list_only_own_orders(self, client, seed_catalog, db_session):
        make_user(db_session, "alice")
        make_user(db_session, "bob")

        login(client, "alice")
        client.post("/api/orders", json=order_payload(seed_catalog))
        login(client, "bob")

        assert client.get("/api/orders").json() == []
        assert client.get("/api/user/orders").json() == []

    def test_other_users_order_is_forbidden(self, client, seed_catalog, db_session):
        make_user(db_session, "alice")
        make_user(db_session, "bob")

        login(client, "alice")
        order_id = client.post("/api/orders", json=order_payload(seed_catalog)).json()["order"]["id"]
        assert client.get(f"/api/orders/{order_id}").status_code == 200

        login(client, "bob")
        response = client.get(f"/api/orders/{order_id}")

        assert response.status_code == 403
        assert "message" in response.json()

    def test_missing_order_is_not_found(self, customer_client):
        assert customer_client.get("/api/orders/4242").status_code == 404


class TestAdminLifecycle:

    def _place(self, client, catalog, username):
        login(client, username)
        return client.post("/api/orders", json=order_payload(catalog)).json()["order"]["id"]

    def test_admin_updates_status(self, client, seed_catalog, seed_customer, seed_admin):
        order_id = self._place(client, seed_catalog, seed_customer.username)

        login(client, seed_admin.username)
        response = client.patch(f"/api/admin/orders/{order_id}/status", json={"status": "cooking"})

        assert response.status_code == 200
        assert response.json()["status"] == "cooking"

    def test_unknown_status_rejected(self, client, seed_catalog, seed_customer, seed_admin):
        order_id = self._place(client, seed_catalog, seed_customer.username)

        login(client, seed_admin.username)
        response = client.patch(f"/api/admin/orders/{order_id}/status", json={"status": "teleported"})

        assert response.status_code == 400

    def test_delivered_order_is_final(self, client, seed_catalog, seed_customer, seed_admin):
        order_id = self._place(client, seed_catalog, seed_customer.username)

        login(client, seed_admin.username)
        assert client.post(f"/api/admin/orders/{order_id}/delivered").status_code == 200
        response = client.patch(f"/api/admin/orders/{order_id}/status", json={"status": "cooking"})

        assert response.status_code == 409

    def test_customer_cannot_use_admin_routes(self, client, seed_catalog, seed_customer):
        order_id = self._place(client, seed_catalog, seed_customer.username)

        response = client.patch(f"/api/admin/orders/{order_id}/status", json={"status": "cooking"})

        assert response.status_code == 403

    def test_admin_lists_by_status(self, client, seed_catalog, seed_customer, seed_admin):
        self._place(client, seed_catalog, seed_customer.username)

        login(client, seed_admin.username)
        pending = client.get("/api/admin/orders", params={"status": "pending"}).json()
        delivered = client.get("/api/admin/orders", params={"status": "delivered"}).json()

        assert len(pending) == 1
        assert delivered == []

    def test_tracking_update(self, client, seed_catalog, seed_customer, seed_admin):
        order_id = self._place(client, seed_catalog, seed_customer.username)

        login(client, seed_admin.username)
        response = client.patch(
            f"/api/admin/orders/{order_id}/tracking",
            json={"tracking_url": "https://track.example/abc", "estimated_delivery_time": "2030-01-01T12:30:00Z"},
        )

        assert response.status_code == 200
        assert response.json()["tracking_url"] == "https://track.example/abc"


class TestReviews:

    def test_review_after_delivery(self, client, seed_catalog, seed_customer, seed_admin):
        login(client, seed_customer.username)
        order_id = client.post("/api/orders", json=order_payload(seed_catalog)).json()["order"]["id"]

        early = client.post(f"/api/orders/{order_id}/reviews", json={"rating": 5, "comment": "Lovely"})
        assert early.status_code == 400

        login(client, seed_admin.username)
        client.post(f"/api/admin/orders/{order_id}/delivered")

        login(client, seed_customer.username)
        response = client.post(f"/api/orders/{order_id}/reviews", json={"rating": 5, "comment": "Lovely"})
        assert response.status_code == 201

        reviews = client.get(f"/api/orders/{order_id}/reviews").json()
        assert [r["rating"] for r in reviews] == [5]

    def test_rating_out_of_range(self, customer_client, seed_catalog):
        order_id = customer_client.post(
            "/api/orders", json=order_payload(seed_catalog)
        ).json()["order"]["id"]

        response = customer_client.post(
            f"/api/orders/{order_id}/reviews", json={"rating": 9, "comment": "Too good"}
        )

        assert response.status_code == 400
