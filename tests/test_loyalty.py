"""
Tests for loyalty points: earning on payment, redemption against orders.
"""

import pytest
from hypothesis import given, settings, strategies as st

from pizza_api.models import User
from pizza_api.repositories import InMemoryUnitOfWork
from pizza_api.services.domain import LoyaltyService
from pizza_api.services.domain.loyalty_service import points_for_amount
from pizza_shared.config.constants import OrderStatus, PaymentStatus
from pizza_shared.utils.exceptions import (
    AlreadyPaidError,
    ForbiddenError,
    InsufficientPointsError,
    InvalidStateError,
)
from tests.conftest import order_payload


def _store(points=100, total=20.0):
    uow = InMemoryUnitOfWork()
    user = uow.users.create(username="lee", email="lee@test.com", password="x", loyalty_points=points)
    order = uow.orders.create(
        user_id=user.id,
        total_amount=total,
        delivery_address="7 Orchard Lane, Portland",
        contact_number="5557654321",
    )
    return uow, user, order


class TestEarnRate:

    @given(amount=st.floats(min_value=0, max_value=100_000, allow_nan=False))
    @settings(max_examples=100)
    def test_points_are_floor_of_tenth(self, amount):
        points = points_for_amount(amount, divisor=10)

        assert points >= 0
        assert points * 10 <= amount + 1e-4
        assert (points + 1) * 10 > amount - 1e-4

    def test_exact_multiple_not_lost_to_float_noise(self):
        assert points_for_amount(0.1 * 3 * 100, divisor=10) == 3

    def test_ninety_seven_earns_nine(self):
        assert points_for_amount(97, divisor=10) == 9

    def test_small_payment_earns_nothing(self):
        assert points_for_amount(9.99, divisor=10) == 0


class TestRedeem:

    def test_redeem_reduces_balance_and_order(self):
        uow, user, order = _store(points=100, total=20.0)

        result = LoyaltyService(uow, point_value=0.10).redeem(user.id, 50, order.id)

        assert result.points_charged == 50
        assert result.discount_amount == 5.0
        assert result.final_amount == 15.0
        assert result.remaining_points == 50
        assert uow.orders.get(order.id).loyalty_points_redeemed == 50

    def test_more_than_balance_rejected(self):
        uow, user, order = _store(points=10)

        with pytest.raises(InsufficientPointsError):
            LoyaltyService(uow).redeem(user.id, 11, order.id)

        assert uow.users.get(user.id).loyalty_points == 10

    def test_double_redeem_cannot_overdraw(self):
        """Two redemptions of the full balance: the second one fails."""
        uow, user, order = _store(points=30, total=50.0)
        service = LoyaltyService(uow, point_value=0.10)

        service.redeem(user.id, 30, order.id)
        with pytest.raises(InsufficientPointsError):
            service.redeem(user.id, 30, order.id)

        assert uow.users.get(user.id).loyalty_points == 0

    def test_stale_balance_caught_by_guarded_decrement(self, monkeypatch):
        """A balance read that is already stale is caught by the conditional write."""
        uow, user, order = _store(points=40)
        monkeypatch.setattr(uow.users, "decrement", lambda *a, **k: False)

        with pytest.raises(InsufficientPointsError):
            LoyaltyService(uow).redeem(user.id, 40, order.id)

        assert uow.orders.get(order.id).loyalty_points_redeemed == 0

    def test_discount_clamped_to_amount_owed(self):
        uow, user, order = _store(points=500, total=20.0)

        result = LoyaltyService(uow, point_value=0.10, charge_full_points=True).redeem(user.id, 500, order.id)

        assert result.discount_amount == 20.0
        assert result.final_amount == 0
        assert result.points_charged == 500

    def test_clamped_redemption_can_charge_only_used_points(self):
        uow, user, order = _store(points=500, total=20.0)

        result = LoyaltyService(uow, point_value=0.10, charge_full_points=False).redeem(user.id, 500, order.id)

        assert result.discount_amount == 20.0
        assert result.points_charged == 200
        assert result.remaining_points == 300

    def test_other_users_order_forbidden(self):
        uow, user, order = _store()
        other = uow.users.create(username="max", email="max@test.com", password="x", loyalty_points=100)

        with pytest.raises(ForbiddenError):
            LoyaltyService(uow).redeem(other.id, 10, order.id)

    def test_paid_order_rejected(self):
        uow, user, order = _store()
        uow.orders.update(order, payment_status=PaymentStatus.COMPLETED)

        with pytest.raises(AlreadyPaidError):
            LoyaltyService(uow).redeem(user.id, 10, order.id)

    def test_cancelled_order_rejected(self):
        uow, user, order = _store()
        uow.orders.update(order, status=OrderStatus.CANCELLED)

        with pytest.raises(InvalidStateError):
            LoyaltyService(uow).redeem(user.id, 10, order.id)

    @given(
        balance=st.integers(min_value=0, max_value=5_000),
        requests=st.lists(st.integers(min_value=1, max_value=2_000), min_size=1, max_size=6),
    )
    @settings(max_examples=50)
    def test_balance_never_negative(self, balance, requests):
        uow, user, order = _store(points=balance, total=10_000.0)
        service = LoyaltyService(uow, point_value=0.01)

        charged = 0
        for points in requests:
            try:
                charged += service.redeem(user.id, points, order.id).points_charged
            except InsufficientPointsError:
                pass

        assert uow.users.get(user.id).loyalty_points == balance - charged >= 0


class TestLoyaltyEndpoints:

    def test_balance(self, customer_client, seed_customer, db_session):
        seed_customer.loyalty_points = 42
        db_session.commit()

        response = customer_client.get("/api/loyalty-points")

        assert response.status_code == 200
        assert response.json() == {"loyalty_points": 42, "membership_tier": "bronze"}

    def test_redeem_endpoint(self, customer_client, seed_customer, seed_catalog, db_session):
        seed_customer.loyalty_points = 100
        db_session.commit()
        order_id = customer_client.post(
            "/api/orders", json=order_payload(seed_catalog, total=30.0)
        ).json()["order"]["id"]

        response = customer_client.post(
            "/api/loyalty-points/redeem", json={"points": 100, "order_id": order_id}
        )

        assert response.status_code == 200
        assert response.json()["remaining_points"] == 0
        db_session.expire_all()
        assert db_session.get(User, seed_customer.id).loyalty_points == 0

    def test_redeem_over_balance_is_bad_request(self, customer_client, seed_catalog):
        order_id = customer_client.post(
            "/api/orders", json=order_payload(seed_catalog)
        ).json()["order"]["id"]

        response = customer_client.post(
            "/api/loyalty-points/redeem", json={"points": 5, "order_id": order_id}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Insufficient loyalty points"
