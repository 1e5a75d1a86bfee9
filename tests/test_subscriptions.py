"""
Tests for subscription plans and the subscription state machine.
"""

from datetime import datetime, timedelta, timezone

import pytest

from pizza_api.repositories import InMemoryUnitOfWork
from pizza_api.services.domain import NotificationService, SubscriptionService
from pizza_api.services.domain.subscription_service import next_status
from pizza_shared.config.constants import NotificationType, SubscriptionStatus
from pizza_shared.utils.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from pizza_shared.utils.schemas import SubscribeRequest
from tests.conftest import login, make_user


class TestStateMachine:

    @pytest.mark.parametrize(
        "current, action, expected",
        [
            ("active", "pause", "paused"),
            ("paused", "resume", "active"),
            ("active", "cancel", "cancelled"),
            ("paused", "cancel", "cancelled"),
        ],
    )
    def test_allowed_transitions(self, current, action, expected):
        assert next_status(current, action) == expected

    @pytest.mark.parametrize(
        "current, action",
        [
            ("paused", "pause"),
            ("active", "resume"),
            ("cancelled", "resume"),
            ("cancelled", "cancel"),
            ("expired", "pause"),
        ],
    )
    def test_rejected_transitions(self, current, action):
        with pytest.raises(InvalidTransitionError):
            next_status(current, action)

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            next_status("active", "teleport")


class TestSubscriptionService:

    @pytest.fixture
    def store(self):
        uow = InMemoryUnitOfWork()
        user = uow.users.create(username="ana", email="ana@test.com", password="x")
        plan = uow.plans.create(
            name="Weekly Slice",
            description="One pizza a week",
            price=14.99,
            interval_days=7,
            pizza_allowance=1,
        )
        return uow, user, plan

    def test_subscribe_sets_next_delivery(self, store):
        uow, user, plan = store
        start = datetime(2030, 3, 1, 12, 0, tzinfo=timezone.utc)

        result = SubscriptionService(uow, NotificationService(uow)).subscribe(
            user.id, SubscribeRequest(plan_id=plan.id), now=start
        )

        assert result.status == SubscriptionStatus.ACTIVE
        assert result.next_delivery_date == start + timedelta(days=7)
        assert result.plan.name == "Weekly Slice"
        types = [n.type for n in uow.notifications.find_by(user_id=user.id)]
        assert types == [NotificationType.SUBSCRIPTION_CREATED]

    def test_inactive_plan_not_found(self, store):
        uow, user, plan = store
        uow.plans.update(plan, is_active=False)

        with pytest.raises(NotFoundError):
            SubscriptionService(uow).subscribe(user.id, SubscribeRequest(plan_id=plan.id))

    def test_foreign_address_rejected(self, store):
        uow, user, plan = store
        other = uow.users.create(username="ben", email="ben@test.com", password="x")
        address = uow.addresses.create(
            user_id=other.id, name="Home", address_line1="1 Elm St",
            city="Austin", state="TX", postal_code="73301",
        )

        with pytest.raises(ValidationError):
            SubscriptionService(uow).subscribe(
                user.id, SubscribeRequest(plan_id=plan.id, default_address_id=address.id)
            )

    def test_default_pizza_is_checked_against_catalog(self, store):
        uow, user, plan = store

        with pytest.raises(ValidationError):
            SubscriptionService(uow).subscribe(
                user.id,
                SubscribeRequest(plan_id=plan.id, default_pizza_config={"base_id": 77}),
            )

    def test_pause_resume_cancel(self, store):
        uow, user, plan = store
        service = SubscriptionService(uow, NotificationService(uow))
        subscription_id = service.subscribe(user.id, SubscribeRequest(plan_id=plan.id)).id

        assert service.transition(subscription_id, user.id, "pause").status == "paused"
        assert service.transition(subscription_id, user.id, "resume").status == "active"
        cancelled = service.transition(subscription_id, user.id, "cancel")

        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_at is not None
        with pytest.raises(InvalidTransitionError):
            service.transition(subscription_id, user.id, "resume")

    def test_pause_resume_keeps_plan_and_user(self, store):
        uow, user, plan = store
        service = SubscriptionService(uow)
        subscription_id = service.subscribe(user.id, SubscribeRequest(plan_id=plan.id)).id

        service.transition(subscription_id, user.id, "pause")
        resumed = service.transition(subscription_id, user.id, "resume")

        assert resumed.status == "active"
        assert resumed.plan_id == plan.id
        assert resumed.user_id == user.id

    def test_transition_does_not_move_delivery_date(self, store):
        uow, user, plan = store
        service = SubscriptionService(uow)
        created = service.subscribe(user.id, SubscribeRequest(plan_id=plan.id))

        paused = service.transition(created.id, user.id, "pause")

        assert paused.next_delivery_date == created.next_delivery_date

    def test_other_user_forbidden(self, store):
        uow, user, plan = store
        service = SubscriptionService(uow)
        subscription_id = service.subscribe(user.id, SubscribeRequest(plan_id=plan.id)).id

        with pytest.raises(ForbiddenError):
            service.transition(subscription_id, user_id=999, action="pause")

        assert service.transition(subscription_id, user_id=999, action="pause", is_admin=True).status == "paused"


class TestSubscriptionEndpoints:

    def test_public_plan_list(self, client, seed_plan):
        response = client.get("/api/subscription-plans")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Weekly Slice"]

    def test_subscribe_and_pause(self, customer_client, seed_plan):
        created = customer_client.post("/api/subscribe", json={"plan_id": seed_plan.id})
        assert created.status_code == 201
        subscription_id = created.json()["id"]

        paused = customer_client.post(f"/api/user-subscriptions/{subscription_id}/pause")
        again = customer_client.post(f"/api/user-subscriptions/{subscription_id}/pause")

        assert paused.json()["status"] == "paused"
        assert again.status_code == 409

    def test_list_only_own(self, client, seed_plan, db_session):
        make_user(db_session, "alice")
        make_user(db_session, "bob")
        login(client, "alice")
        subscription_id = client.post("/api/subscribe", json={"plan_id": seed_plan.id}).json()["id"]

        login(client, "bob")

        assert client.get("/api/user-subscriptions").json() == []
        assert client.get(f"/api/user-subscriptions/{subscription_id}").status_code == 403

    def test_admin_plan_management(self, admin_client):
        created = admin_client.post(
            "/api/admin/subscription-plans",
            json={"name": "Family Feast", "price": 39.99, "interval_days": 14, "pizza_allowance": 3},
        )
        assert created.status_code == 201
        plan_id = created.json()["id"]

        toggled = admin_client.post(f"/api/admin/subscription-plans/{plan_id}/toggle")
        assert toggled.json()["is_active"] is False
        assert admin_client.get("/api/subscription-plans").json() == []

        updated = admin_client.patch(f"/api/admin/subscription-plans/{plan_id}", json={"price": 35.0})
        assert updated.json()["price"] == 35.0

    def test_inactive_plan_cannot_be_joined(self, customer_client, seed_plan, db_session):
        seed_plan.is_active = False
        db_session.commit()

        response = customer_client.post("/api/subscribe", json={"plan_id": seed_plan.id})

        assert response.status_code == 404
