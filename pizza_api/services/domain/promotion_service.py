"""
Promotion Service.

A code is valid for an amount when all of these hold:
- the promotion is active
- start_date <= now <= end_date
- it has no usage cap, or current_uses < max_uses
- min_order_amount <= amount

Discounts: percentage -> amount * value / 100, fixed -> value, both clamped
to the amount so a total never goes negative.

Applying a code to an order writes the order's discount fields and bumps the
usage counter in one unit of work; the counter bump is guarded by the cap so
two orders racing for the last use cannot both win.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from pizza_api.models import Promotion, as_utc, utcnow
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import DiscountType, NotificationType, OrderStatus
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import (
    AlreadyPaidError,
    ConflictError,
    DuplicateEntityError,
    ForbiddenError,
    InvalidPromotionError,
    InvalidStateError,
    NotFoundError,
    PromotionExhaustedError,
    ValidationError,
)
from .notification_service import NotificationService

logger = get_logger(__name__)


# =============================================================================
# Output Schemas
# =============================================================================


class PromotionOutput(BaseModel):
    id: int
    code: str
    description: str
    discount_type: str
    discount_value: float
    min_order_amount: float
    max_uses: int | None = None
    current_uses: int
    start_date: datetime
    end_date: datetime
    is_active: bool

    class Config:
        from_attributes = True


class PromotionValidationOutput(BaseModel):
    promotion: PromotionOutput
    discount_amount: float
    final_amount: float


class AppliedPromotionOutput(BaseModel):
    order_id: int
    code: str
    discount_amount: float
    final_amount: float


# =============================================================================
# Rules
# =============================================================================


def is_promotion_valid(promotion: Promotion, amount: float, now: datetime | None = None) -> bool:
    now = as_utc(now) if now else utcnow()
    if not promotion.is_active:
        return False
    if not (as_utc(promotion.start_date) <= now <= as_utc(promotion.end_date)):
        return False
    if promotion.max_uses is not None and promotion.current_uses >= promotion.max_uses:
        return False
    return promotion.min_order_amount <= amount


def compute_discount(promotion: Promotion, amount: float) -> float:
    """Discount for an amount, never more than the amount itself."""
    if promotion.discount_type == DiscountType.PERCENTAGE:
        discount = amount * promotion.discount_value / 100
    else:
        discount = promotion.discount_value
    return round(max(0.0, min(discount, amount)), 2)


def normalize_code(code: str) -> str:
    return code.strip().upper()


class PromotionService:

    def __init__(self, uow: UnitOfWork, notifier: NotificationService | None = None):
        self._uow = uow
        self._notifier = notifier

    # =========================================================================
    # Queries
    # =========================================================================

    def list_promotions(self, include_inactive: bool = False) -> list[PromotionOutput]:
        """Admins see every promotion; customers see active ones that have not ended."""
        now = utcnow()
        promotions = self._uow.promotions.list_all(order_by="-start_date")
        if not include_inactive:
            promotions = [
                p for p in promotions
                if p.is_active and as_utc(p.end_date) >= now
            ]
        return [PromotionOutput.model_validate(p) for p in promotions]

    def find_by_code(self, code: str) -> Promotion | None:
        return self._uow.promotions.first_by(code=normalize_code(code))

    def find_valid(self, code: str, amount: float, now: datetime | None = None) -> Promotion | None:
        promotion = self.find_by_code(code)
        if promotion is None or not is_promotion_valid(promotion, amount, now):
            return None
        return promotion

    def validate(self, code: str, amount: float) -> PromotionValidationOutput:
        promotion = self.find_valid(code, amount)
        if promotion is None:
            raise InvalidPromotionError(code, amount=amount)

        discount = compute_discount(promotion, amount)
        return PromotionValidationOutput(
            promotion=PromotionOutput.model_validate(promotion),
            discount_amount=discount,
            final_amount=round(amount - discount, 2),
        )

    # =========================================================================
    # Apply
    # =========================================================================

    def apply_to_order(self, user_id: int, order_id: int, code: str) -> AppliedPromotionOutput:
        with self._uow:
            order = self._uow.orders.get(order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            if order.user_id != user_id:
                raise ForbiddenError("modify this order", order_id=order_id, user_id=user_id)
            if order.is_paid:
                raise AlreadyPaidError(order_id)
            if order.status == OrderStatus.CANCELLED:
                raise InvalidStateError("Order", order.status, order_id=order_id)
            if order.promotion_id is not None:
                raise ConflictError("A promotion has already been applied to this order", order_id=order_id)

            promotion = self.find_valid(code, order.total_amount)
            if promotion is None:
                raise InvalidPromotionError(code, order_id=order_id)

            remaining = order.total_amount - order.loyalty_discount_amount
            discount = min(compute_discount(promotion, order.total_amount), round(remaining, 2))

            if not self._uow.promotions.increment(
                promotion.id, "current_uses", 1, cap_field="max_uses"
            ):
                raise PromotionExhaustedError(promotion.code, order_id=order_id)

            self._uow.orders.update(
                order,
                promotion_id=promotion.id,
                discount_code=promotion.code,
                discount_amount=discount,
            )

            if self._notifier is not None:
                self._notifier.notify(
                    user_id,
                    NotificationType.PROMOTION_APPLIED,
                    "Promotion Applied",
                    f"Code {promotion.code} saved you ${discount:.2f} on order #{order.id}.",
                    link_url=f"/orders/{order.id}",
                )

        logger.info(
            "Promotion applied",
            order_id=order_id,
            code=promotion.code,
            discount=discount,
            uses=promotion.current_uses,
        )
        return AppliedPromotionOutput(
            order_id=order.id,
            code=promotion.code,
            discount_amount=discount,
            final_amount=order.payable_amount,
        )

    # =========================================================================
    # Admin
    # =========================================================================

    def _check_rules(self, values: dict[str, Any]) -> None:
        if values.get("discount_type") not in (None, *DiscountType.ALL):
            raise ValidationError("discount_type must be 'percentage' or 'fixed'")
        if values.get("discount_type") == DiscountType.PERCENTAGE and values.get("discount_value", 0) > 100:
            raise ValidationError("Percentage discounts cannot exceed 100")
        start, end = values.get("start_date"), values.get("end_date")
        if start is not None and end is not None and as_utc(start) > as_utc(end):
            raise ValidationError("start_date must be before end_date")

    def create_promotion(self, **values: Any) -> PromotionOutput:
        values["code"] = normalize_code(values["code"])
        self._check_rules(values)
        if self.find_by_code(values["code"]) is not None:
            raise DuplicateEntityError("Promotion", "code", code=values["code"])

        with self._uow:
            promotion = self._uow.promotions.create(current_uses=0, **values)

        logger.info("Promotion created", promotion_id=promotion.id, code=promotion.code)
        return PromotionOutput.model_validate(promotion)

    def update_promotion(self, promotion_id: int, **changes: Any) -> PromotionOutput:
        """Codes and usage counters are immutable; everything else may change."""
        changes.pop("code", None)
        changes.pop("current_uses", None)
        # None clears max_uses (unlimited); for other fields it means "unchanged"
        changes = {k: v for k, v in changes.items() if v is not None or k == "max_uses"}

        with self._uow:
            promotion = self._uow.promotions.get(promotion_id)
            if promotion is None:
                raise NotFoundError("Promotion", promotion_id)

            merged = {
                "discount_type": promotion.discount_type,
                "discount_value": promotion.discount_value,
                "start_date": promotion.start_date,
                "end_date": promotion.end_date,
                **changes,
            }
            self._check_rules(merged)
            if "max_uses" in changes and changes["max_uses"] is not None \
                    and changes["max_uses"] < promotion.current_uses:
                raise ValidationError("max_uses cannot be lower than current usage")

            self._uow.promotions.update(promotion, **changes)

        logger.info("Promotion updated", promotion_id=promotion_id, fields=sorted(changes))
        return PromotionOutput.model_validate(promotion)
