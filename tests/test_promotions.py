"""
Tests for promotion codes: validation rules, application to orders and the
admin endpoints.
"""

from datetime import timedelta

import pytest
from hypothesis import given, settings, strategies as st

from pizza_api.models import Order, Promotion, utcnow
from pizza_api.repositories import InMemoryUnitOfWork
from pizza_api.services.domain import PromotionService
from pizza_api.services.domain.promotion_service import compute_discount, is_promotion_valid
from pizza_shared.config.constants import DiscountType
from pizza_shared.utils.exceptions import (
    ConflictError,
    InvalidPromotionError,
    PromotionExhaustedError,
)
from tests.conftest import login, make_user, order_payload


def _promotion(**overrides) -> Promotion:
    now = utcnow()
    values = dict(
        code="SAVE",
        description="test",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=10,
        min_order_amount=0,
        max_uses=None,
        current_uses=0,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
        is_active=True,
    )
    values.update(overrides)
    return Promotion(**values)


class TestDiscountProperties:
    """Property-based checks on the discount arithmetic."""

    @given(
        amount=st.floats(min_value=0.01, max_value=10_000, allow_nan=False),
        percent=st.floats(min_value=0.01, max_value=100, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_percentage_discount_never_exceeds_amount(self, amount, percent):
        discount = compute_discount(_promotion(discount_value=percent), amount)

        assert 0 <= discount <= round(amount, 2) + 0.005

    @given(
        amount=st.floats(min_value=0.01, max_value=10_000, allow_nan=False),
        value=st.floats(min_value=0.01, max_value=50_000, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_fixed_discount_is_clamped_to_amount(self, amount, value):
        promotion = _promotion(discount_type=DiscountType.FIXED, discount_value=value)

        discount = compute_discount(promotion, amount)

        assert discount == round(min(value, amount), 2)


class TestDiscountExamples:

    def test_percentage_discount(self):
        promotion = _promotion(discount_value=20)

        discount = compute_discount(promotion, 100)

        assert discount == 20
        assert 100 - discount == 80

    def test_fixed_discount_larger_than_order_is_clamped(self):
        promotion = _promotion(discount_type=DiscountType.FIXED, discount_value=500)

        discount = compute_discount(promotion, 100)

        assert discount == 100
        assert 100 - discount == 0


class TestValidityRules:

    def test_inactive_promotion_invalid(self):
        assert not is_promotion_valid(_promotion(is_active=False), 50)

    def test_window_is_inclusive(self):
        now = utcnow()
        promotion = _promotion(start_date=now, end_date=now)

        assert is_promotion_valid(promotion, 50, now=now)
        assert not is_promotion_valid(promotion, 50, now=now + timedelta(seconds=1))

    def test_exhausted_promotion_invalid(self):
        assert not is_promotion_valid(_promotion(max_uses=3, current_uses=3), 50)

    def test_minimum_order_amount(self):
        promotion = _promotion(min_order_amount=20)

        assert not is_promotion_valid(promotion, 19.99)
        assert is_promotion_valid(promotion, 20)


class TestApplyPromotion:

    @pytest.fixture
    def store(self):
        uow = InMemoryUnitOfWork()
        user = uow.users.create(username="kim", email="kim@test.com", password="x")
        now = utcnow()
        uow.promotions.create(
            code="ONCE",
            description="single use",
            discount_type=DiscountType.FIXED,
            discount_value=5,
            min_order_amount=0,
            max_uses=1,
            current_uses=0,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            is_active=True,
        )

        def new_order():
            return uow.orders.create(
                user_id=user.id,
                total_amount=20.0,
                delivery_address="1 Loop Road, Cupertino",
                contact_number="5550009999",
            )

        return uow, user, new_order

    def test_apply_sets_discount(self, store):
        uow, user, new_order = store
        order = new_order()

        result = PromotionService(uow).apply_to_order(user.id, order.id, " once ")

        assert result.discount_amount == 5
        assert result.final_amount == 15
        assert uow.promotions.first_by(code="ONCE").current_uses == 1

    def test_second_apply_on_same_order_conflicts(self, store):
        uow, user, new_order = store
        order = new_order()
        PromotionService(uow).apply_to_order(user.id, order.id, "ONCE")

        with pytest.raises(ConflictError):
            PromotionService(uow).apply_to_order(user.id, order.id, "ONCE")

    def test_usage_cap_blocks_second_order(self, store):
        uow, user, new_order = store
        PromotionService(uow).apply_to_order(user.id, new_order().id, "ONCE")

        with pytest.raises(InvalidPromotionError):
            PromotionService(uow).apply_to_order(user.id, new_order().id, "ONCE")

        assert uow.promotions.first_by(code="ONCE").current_uses == 1

    def test_cap_reached_between_check_and_increment(self, store, monkeypatch):
        """The capped increment is authoritative even if validation passed."""
        uow, user, new_order = store
        order = new_order()
        monkeypatch.setattr(uow.promotions, "increment", lambda *a, **k: False)

        with pytest.raises(PromotionExhaustedError):
            PromotionService(uow).apply_to_order(user.id, order.id, "ONCE")

        assert uow.orders.get(order.id).promotion_id is None


class TestPromotionEndpoints:

    def test_validate_code(self, customer_client, seed_promotion):
        response = customer_client.post(
            "/api/promotions/validate", json={"code": "welcome10", "order_amount": 50}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["discount_amount"] == 5
        assert data["final_amount"] == 45

    def test_validate_below_minimum(self, customer_client, seed_promotion):
        response = customer_client.post(
            "/api/promotions/validate", json={"code": "WELCOME10", "order_amount": 5}
        )

        assert response.status_code == 404

    def test_apply_to_order(self, customer_client, seed_catalog, seed_promotion, db_session):
        order_id = customer_client.post(
            "/api/orders", json=order_payload(seed_catalog, total=30.0)
        ).json()["order"]["id"]

        response = customer_client.post(
            f"/api/orders/{order_id}/apply-promotion", json={"code": "WELCOME10"}
        )

        assert response.status_code == 200
        assert response.json()["discount_amount"] == 3
        db_session.expire_all()
        assert db_session.get(Order, order_id).discount_code == "WELCOME10"

    def test_cannot_apply_to_another_users_order(self, client, seed_catalog, seed_promotion, db_session):
        make_user(db_session, "alice")
        make_user(db_session, "mallory")
        login(client, "alice")
        order_id = client.post("/api/orders", json=order_payload(seed_catalog)).json()["order"]["id"]

        login(client, "mallory")
        response = client.post(f"/api/orders/{order_id}/apply-promotion", json={"code": "WELCOME10"})

        assert response.status_code == 403

    def test_public_list_hides_inactive(self, customer_client, seed_promotion, db_session):
        seed_promotion.is_active = False
        db_session.commit()

        assert customer_client.get("/api/promotions").json() == []


class TestAdminPromotions:

    def _body(self, **overrides):
        now = utcnow()
        body = {
            "code": "summer",
            "description": "Summer deal",
            "discount_type": "percentage",
            "discount_value": 15,
            "start_date": now.isoformat(),
            "end_date": (now + timedelta(days=10)).isoformat(),
        }
        body.update(overrides)
        return body

    def test_create_promotion_normalizes_code(self, admin_client):
        response = admin_client.post("/api/admin/promotions", json=self._body())

        assert response.status_code == 201
        assert response.json()["code"] == "SUMMER"

    def test_percentage_over_100_rejected(self, admin_client):
        response = admin_client.post("/api/admin/promotions", json=self._body(discount_value=150))

        assert response.status_code == 400

    def test_duplicate_code_rejected(self, admin_client):
        admin_client.post("/api/admin/promotions", json=self._body())

        response = admin_client.post("/api/admin/promotions", json=self._body())

        assert response.status_code == 400

    def test_deactivate(self, admin_client):
        promotion_id = admin_client.post("/api/admin/promotions", json=self._body()).json()["id"]

        response = admin_client.patch(f"/api/admin/promotions/{promotion_id}", json={"is_active": False})

        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_customer_forbidden(self, customer_client):
        assert customer_client.post("/api/admin/promotions", json=self._body()).status_code == 403
