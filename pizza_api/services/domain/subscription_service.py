"""
Subscription Service.

State machine:
    (create) -> active
    active   -> paused      (pause)
    paused   -> active      (resume)
    active | paused -> cancelled (cancel, terminal)

Transitions only touch status (and cancelled_at). next_delivery_date is set
once at creation to start + interval_days.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel

from pizza_api.models import UserSubscription, utcnow
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import (
    SUBSCRIPTION_TRANSITIONS,
    NotificationType,
    SubscriptionStatus,
)
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from pizza_shared.utils.schemas import SubscribeRequest
from .catalog_service import CatalogService
from .notification_service import NotificationService

logger = get_logger(__name__)


# =============================================================================
# Output Schemas
# =============================================================================


class SubscriptionPlanOutput(BaseModel):
    id: int
    name: str
    description: str
    price: float
    interval_days: int
    pizza_allowance: int
    additional_perks: list[str] = []
    is_active: bool

    class Config:
        from_attributes = True


class UserSubscriptionOutput(BaseModel):
    id: int
    user_id: int
    plan_id: int
    status: str
    start_date: datetime
    next_delivery_date: datetime
    cancelled_at: datetime | None = None
    payment_method_id: int | None = None
    default_address_id: int | None = None
    default_pizza_config: dict[str, Any] | None = None
    plan: SubscriptionPlanOutput | None = None

    class Config:
        from_attributes = True


_TRANSITION_NOTIFICATIONS = {
    "pause": (NotificationType.SUBSCRIPTION_PAUSED, "Subscription Paused", "has been paused"),
    "resume": (NotificationType.SUBSCRIPTION_RESUMED, "Subscription Resumed", "is active again"),
    "cancel": (NotificationType.SUBSCRIPTION_CANCELLED, "Subscription Cancelled", "has been cancelled"),
}


def next_status(current: str, action: str) -> str:
    """
    Target status for an action.

    Raises:
        InvalidTransitionError: if the action is not allowed from current.
    """
    if action not in SUBSCRIPTION_TRANSITIONS:
        raise ValidationError(f"Unknown subscription action '{action}'")
    sources, target = SUBSCRIPTION_TRANSITIONS[action]
    if current not in sources:
        raise InvalidTransitionError("subscription", current, target)
    return target


class SubscriptionService:

    def __init__(self, uow: UnitOfWork, notifier: NotificationService | None = None):
        self._uow = uow
        self._notifier = notifier

    def _notify(self, user_id: int, type: str, title: str, message: str) -> None:
        if self._notifier is not None:
            self._notifier.notify(user_id, type, title, message, link_url="/subscriptions")

    # =========================================================================
    # Plans
    # =========================================================================

    def list_plans(self, include_inactive: bool = False) -> list[SubscriptionPlanOutput]:
        plans = self._uow.plans.list_all(order_by="price")
        return [
            SubscriptionPlanOutput.model_validate(p) for p in plans
            if include_inactive or p.is_active
        ]

    def get_plan(self, plan_id: int) -> SubscriptionPlanOutput:
        plan = self._uow.plans.get(plan_id)
        if plan is None:
            raise NotFoundError("Subscription plan", plan_id)
        return SubscriptionPlanOutput.model_validate(plan)

    def create_plan(self, **values: Any) -> SubscriptionPlanOutput:
        with self._uow:
            plan = self._uow.plans.create(**values)
        logger.info("Subscription plan created", plan_id=plan.id, plan_name=plan.name)
        return SubscriptionPlanOutput.model_validate(plan)

    def update_plan(self, plan_id: int, **changes: Any) -> SubscriptionPlanOutput:
        changes = {k: v for k, v in changes.items() if v is not None}
        with self._uow:
            plan = self._uow.plans.get(plan_id)
            if plan is None:
                raise NotFoundError("Subscription plan", plan_id)
            self._uow.plans.update(plan, **changes)
        logger.info("Subscription plan updated", plan_id=plan_id, fields=sorted(changes))
        return SubscriptionPlanOutput.model_validate(plan)

    def toggle_plan(self, plan_id: int) -> SubscriptionPlanOutput:
        with self._uow:
            plan = self._uow.plans.get(plan_id)
            if plan is None:
                raise NotFoundError("Subscription plan", plan_id)
            self._uow.plans.update(plan, is_active=not plan.is_active)
        logger.info("Subscription plan toggled", plan_id=plan_id, is_active=plan.is_active)
        return SubscriptionPlanOutput.model_validate(plan)

    # =========================================================================
    # User subscriptions
    # =========================================================================

    def _to_output(self, subscription: UserSubscription) -> UserSubscriptionOutput:
        output = UserSubscriptionOutput.model_validate(subscription)
        plan = self._uow.plans.get(subscription.plan_id)
        if plan is not None:
            output.plan = SubscriptionPlanOutput.model_validate(plan)
        return output

    def subscribe(
        self,
        user_id: int,
        data: SubscribeRequest,
        now: datetime | None = None,
    ) -> UserSubscriptionOutput:
        plan = self._uow.plans.get(data.plan_id)
        if plan is None or not plan.is_active:
            raise NotFoundError("Subscription plan", data.plan_id)

        if data.payment_method_id is not None:
            method = self._uow.payment_methods.get(data.payment_method_id)
            if method is None or method.user_id != user_id:
                raise ValidationError("Unknown payment method", payment_method_id=data.payment_method_id)

        if data.default_address_id is not None:
            address = self._uow.addresses.get(data.default_address_id)
            if address is None or address.user_id != user_id:
                raise ValidationError("Unknown address", address_id=data.default_address_id)

        pizza_config = None
        if data.default_pizza_config is not None:
            # Validates every id against the catalog
            CatalogService(self._uow).snapshot_configuration(data.default_pizza_config)
            pizza_config = data.default_pizza_config.model_dump()

        start = now or utcnow()
        with self._uow:
            subscription = self._uow.subscriptions.create(
                user_id=user_id,
                plan_id=plan.id,
                status=SubscriptionStatus.ACTIVE,
                start_date=start,
                next_delivery_date=start + timedelta(days=plan.interval_days),
                payment_method_id=data.payment_method_id,
                default_address_id=data.default_address_id,
                default_pizza_config=pizza_config,
            )
            self._notify(
                user_id,
                NotificationType.SUBSCRIPTION_CREATED,
                "Subscription Created",
                f"You are now subscribed to {plan.name}.",
            )

        logger.info("Subscription created", subscription_id=subscription.id, user_id=user_id, plan_id=plan.id)
        return self._to_output(subscription)

    def list_for_user(self, user_id: int) -> list[UserSubscriptionOutput]:
        rows = self._uow.subscriptions.find_by(user_id=user_id, order_by="-start_date")
        return [self._to_output(s) for s in rows]

    def list_all(self) -> list[UserSubscriptionOutput]:
        return [self._to_output(s) for s in self._uow.subscriptions.list_all(order_by="-start_date")]

    def _get_owned(self, subscription_id: int, user_id: int, is_admin: bool) -> UserSubscription:
        subscription = self._uow.subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)
        if subscription.user_id != user_id and not is_admin:
            raise ForbiddenError("access this subscription", subscription_id=subscription_id, user_id=user_id)
        return subscription

    def get_subscription(self, subscription_id: int, user_id: int, is_admin: bool = False) -> UserSubscriptionOutput:
        return self._to_output(self._get_owned(subscription_id, user_id, is_admin))

    def transition(
        self,
        subscription_id: int,
        user_id: int,
        action: str,
        is_admin: bool = False,
    ) -> UserSubscriptionOutput:
        with self._uow:
            subscription = self._get_owned(subscription_id, user_id, is_admin)
            previous = subscription.status
            target = next_status(previous, action)

            changes: dict[str, Any] = {"status": target}
            if target == SubscriptionStatus.CANCELLED:
                changes["cancelled_at"] = utcnow()
            self._uow.subscriptions.update(subscription, **changes)

            type, title, verb = _TRANSITION_NOTIFICATIONS[action]
            plan = self._uow.plans.get(subscription.plan_id)
            plan_name = plan.name if plan else "your plan"
            self._notify(subscription.user_id, type, title, f"Your subscription to {plan_name} {verb}.")

        logger.info(
            "Subscription transitioned",
            subscription_id=subscription_id,
            action=action,
            from_status=previous,
            to_status=target,
        )
        return self._to_output(subscription)
