"""
Loyalty Service.

Earning: one point per ``loyalty_earn_divisor`` currency units paid, rounded down.
Redeeming: each point is worth ``loyalty_point_value``. The discount is
clamped to what the order still owes. The balance is charged with a guarded
decrement (balance - points >= 0) in the same unit of work as the order
update, so two redemptions racing for the same balance cannot both succeed.

When a discount is clamped, ``loyalty_charge_full_points`` decides whether
the customer pays every requested point (legacy storefront behaviour) or
only the points the discount actually used.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import NotificationType, OrderStatus
from pizza_shared.config.logging import get_logger
from pizza_shared.config.settings import settings
from pizza_shared.utils.exceptions import (
    AlreadyPaidError,
    ForbiddenError,
    InsufficientPointsError,
    InvalidStateError,
    NotFoundError,
)
from .notification_service import NotificationService

logger = get_logger(__name__)


class LoyaltyBalanceOutput(BaseModel):
    loyalty_points: int
    membership_tier: str


class RedemptionOutput(BaseModel):
    order_id: int
    points_requested: int
    points_charged: int
    discount_amount: float
    final_amount: float
    remaining_points: int


def points_for_amount(amount_paid: float, divisor: int | None = None) -> int:
    """floor(amount / divisor); never negative."""
    divisor = divisor or settings.loyalty_earn_divisor
    if amount_paid <= 0:
        return 0
    # round first so 99.99999 from float noise does not lose a point
    return int(math.floor(round(amount_paid / divisor, 6)))


def points_value(points: int, point_value: float | None = None) -> float:
    point_value = settings.loyalty_point_value if point_value is None else point_value
    return round(points * point_value, 2)


class LoyaltyService:

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: NotificationService | None = None,
        *,
        point_value: float | None = None,
        earn_divisor: int | None = None,
        charge_full_points: bool | None = None,
    ):
        self._uow = uow
        self._notifier = notifier
        self._point_value = settings.loyalty_point_value if point_value is None else point_value
        self._earn_divisor = earn_divisor or settings.loyalty_earn_divisor
        self._charge_full_points = (
            settings.loyalty_charge_full_points if charge_full_points is None else charge_full_points
        )

    def get_balance(self, user_id: int) -> LoyaltyBalanceOutput:
        user = self._uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return LoyaltyBalanceOutput(
            loyalty_points=user.loyalty_points,
            membership_tier=user.membership_tier,
        )

    def earn(self, user_id: int, amount_paid: float) -> int:
        """Credit points for a completed payment. Returns the points credited."""
        points = points_for_amount(amount_paid, self._earn_divisor)
        if points == 0:
            return 0

        with self._uow:
            if not self._uow.users.increment(user_id, "loyalty_points", points):
                raise NotFoundError("User", user_id)

        logger.info("Loyalty points earned", user_id=user_id, points=points, amount=amount_paid)
        return points

    def redeem(self, user_id: int, points: int, order_id: int) -> RedemptionOutput:
        with self._uow:
            user = self._uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            if points > user.loyalty_points:
                raise InsufficientPointsError(points, user.loyalty_points, user_id=user_id)

            order = self._uow.orders.get(order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            if order.user_id != user_id:
                raise ForbiddenError("redeem points on this order", order_id=order_id, user_id=user_id)
            if order.is_paid:
                raise AlreadyPaidError(order_id)
            if order.status == OrderStatus.CANCELLED:
                raise InvalidStateError("Order", order.status, order_id=order_id)

            full_value = points_value(points, self._point_value)
            discount = min(full_value, order.payable_amount)

            if self._charge_full_points:
                charged = points
            else:
                charged = min(points, math.ceil(round(discount / self._point_value, 6)))

            if discount < full_value:
                logger.warning(
                    "Loyalty discount clamped to order amount",
                    user_id=user_id,
                    order_id=order_id,
                    points_requested=points,
                    points_charged=charged,
                    full_value=full_value,
                    discount=discount,
                )

            # Authoritative balance check: the read above may already be stale
            if not self._uow.users.decrement(user_id, "loyalty_points", charged, floor=0):
                raise InsufficientPointsError(points, user.loyalty_points, user_id=user_id)

            self._uow.orders.update(
                order,
                loyalty_points_redeemed=order.loyalty_points_redeemed + charged,
                loyalty_discount_amount=round(order.loyalty_discount_amount + discount, 2),
            )

            if self._notifier is not None:
                self._notifier.notify(
                    user_id,
                    NotificationType.POINTS_REDEEMED,
                    "Points Redeemed",
                    f"You redeemed {charged} points for ${discount:.2f} off order #{order.id}.",
                    link_url=f"/orders/{order.id}",
                )

        user = self._uow.users.get(user_id)
        logger.info("Loyalty points redeemed", user_id=user_id, order_id=order_id, points=charged)
        return RedemptionOutput(
            order_id=order.id,
            points_requested=points,
            points_charged=charged,
            discount_amount=discount,
            final_amount=order.payable_amount,
            remaining_points=user.loyalty_points,
        )
