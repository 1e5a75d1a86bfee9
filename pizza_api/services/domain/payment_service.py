"""
Payment Service (mocked gateway).

No money moves: a payment is "completed" when the client reports it, or
when the RazorPay webhook says it was captured. Completion marks the order
received, records the payment id, and credits loyalty points for the
amount paid. The whole completion is one unit of work.
"""

from __future__ import annotations

import secrets

from pydantic import BaseModel

from pizza_api.models import Order
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import NotificationType, OrderStatus, PaymentStatus
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import (
    AlreadyPaidError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    PaymentAmountError,
    ValidationError,
)
from pizza_shared.utils.schemas import ProcessPaymentRequest, WebhookEvent
from .loyalty_service import LoyaltyService
from .notification_service import NotificationService

logger = get_logger(__name__)

# Amounts are compared to the cent
AMOUNT_TOLERANCE = 0.005

WEBHOOK_CAPTURED = "payment.captured"
WEBHOOK_FAILED = "payment.failed"


class PaymentResultOutput(BaseModel):
    success: bool
    order_id: int
    payment_id: str
    amount: float
    currency: str
    payment_status: str
    order_status: str
    loyalty_points_earned: int


class WebhookResultOutput(BaseModel):
    status: str
    event: str
    order_id: int | None = None


def new_payment_id() -> str:
    return f"pay_{secrets.token_hex(8)}"


class PaymentService:
    """
    Business rules:
    - Only the order owner pays, and only the exact amount owed
    - An order is paid at most once
    - Cancelled orders cannot be paid
    """

    def __init__(self, uow: UnitOfWork, notifier: NotificationService):
        self._uow = uow
        self._notifier = notifier
        self._loyalty = LoyaltyService(uow, notifier)

    def _payable_order(self, order_id: int, user_id: int | None) -> Order:
        order = self._uow.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if user_id is not None and order.user_id != user_id:
            raise ForbiddenError("pay for this order", order_id=order_id, user_id=user_id)
        if order.is_paid:
            raise AlreadyPaidError(order_id)
        if order.status == OrderStatus.CANCELLED:
            raise InvalidStateError("Order", order.status, order_id=order_id)
        return order

    def _complete(self, order: Order, payment_id: str, amount: float) -> int:
        """Mark paid, move to received and credit points. Caller owns the unit of work."""
        points = self._loyalty.earn(order.user_id, amount)
        self._uow.orders.update(
            order,
            payment_id=payment_id,
            payment_status=PaymentStatus.COMPLETED,
            status=OrderStatus.RECEIVED if order.status == OrderStatus.PENDING else order.status,
            loyalty_points_earned=order.loyalty_points_earned + points,
        )
        message = f"Payment of ${amount:.2f} for order #{order.id} was successful."
        if points:
            message += f" You earned {points} loyalty points."
        self._notifier.notify(
            order.user_id,
            NotificationType.PAYMENT_COMPLETED,
            "Payment Successful",
            message,
            link_url=f"/orders/{order.id}",
        )
        return points

    def process_payment(self, user_id: int, data: ProcessPaymentRequest) -> PaymentResultOutput:
        with self._uow:
            order = self._payable_order(data.order_id, user_id)

            expected = order.payable_amount
            if abs(round(data.amount, 2) - expected) > AMOUNT_TOLERANCE:
                raise PaymentAmountError(data.amount, expected, order_id=order.id)

            if data.payment_method_id is not None:
                method = self._uow.payment_methods.get(data.payment_method_id)
                if method is None or method.user_id != user_id:
                    raise ValidationError("Unknown payment method", payment_method_id=data.payment_method_id)
                self._uow.orders.update(order, payment_method_id=method.id)

            payment_id = new_payment_id()
            points = self._complete(order, payment_id, expected)

        logger.info(
            "Payment processed",
            order_id=order.id,
            user_id=user_id,
            payment_id=payment_id,
            amount=expected,
            points=points,
        )
        return PaymentResultOutput(
            success=True,
            order_id=order.id,
            payment_id=payment_id,
            amount=expected,
            currency=data.currency.upper(),
            payment_status=order.payment_status,
            order_status=order.status,
            loyalty_points_earned=points,
        )

    def confirm_payment(self, user_id: int, order_id: int, payment_id: str) -> PaymentResultOutput:
        """Client-side confirmation after the hosted checkout returns."""
        with self._uow:
            order = self._payable_order(order_id, user_id)
            amount = order.payable_amount
            points = self._complete(order, payment_id, amount)

        logger.info("Payment confirmed", order_id=order_id, payment_id=payment_id)
        return PaymentResultOutput(
            success=True,
            order_id=order.id,
            payment_id=payment_id,
            amount=amount,
            currency="USD",
            payment_status=order.payment_status,
            order_status=order.status,
            loyalty_points_earned=points,
        )

    def handle_webhook(self, event: WebhookEvent) -> WebhookResultOutput:
        """
        payment.captured -> completed (idempotent for already-paid orders)
        payment.failed   -> failed (ignored for already-paid orders)
        anything else    -> logged and acknowledged
        """
        order_id = event.payload.order_id

        if event.event not in (WEBHOOK_CAPTURED, WEBHOOK_FAILED):
            logger.info("Unhandled webhook event", webhook_event=event.event, order_id=order_id)
            return WebhookResultOutput(status="ignored", event=event.event, order_id=order_id)

        with self._uow:
            order = self._uow.orders.get(order_id)
            if order is None:
                raise NotFoundError("Order", order_id)

            if order.is_paid:
                logger.info("Webhook for paid order ignored", webhook_event=event.event, order_id=order_id)
                return WebhookResultOutput(status="ignored", event=event.event, order_id=order_id)

            if event.event == WEBHOOK_CAPTURED:
                payment_id = event.payload.payment_id or new_payment_id()
                self._complete(order, payment_id, order.payable_amount)
            else:
                self._uow.orders.update(
                    order,
                    payment_status=PaymentStatus.FAILED,
                    payment_id=event.payload.payment_id or order.payment_id,
                )
                self._notifier.notify(
                    order.user_id,
                    NotificationType.PAYMENT_FAILED,
                    "Payment Failed",
                    f"Payment for order #{order.id} failed. Please try again.",
                    link_url=f"/orders/{order.id}",
                )

        logger.info(
            "Webhook processed",
            webhook_event=event.event,
            order_id=order_id,
            payment_status=order.payment_status,
        )
        return WebhookResultOutput(status="processed", event=event.event, order_id=order_id)
