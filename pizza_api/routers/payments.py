"""
Payment endpoints (mocked RazorPay) and saved payment methods.

The webhook is the only unauthenticated write in the API. When
RAZORPAY_WEBHOOK_SECRET is configured the raw body must carry a valid
X-Razorpay-Signature.
"""

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_notifier, get_uow
from pizza_api.services.domain import NotificationService, PaymentService, ProfileService
from pizza_api.services.domain.payment_service import PaymentResultOutput, WebhookResultOutput
from pizza_api.services.domain.profile_service import PaymentMethodOutput
from pizza_shared.config.logging import payment_logger as logger
from pizza_shared.config.settings import settings
from pizza_shared.security.signing import SIGNATURE_HEADER, verify_signature
from pizza_shared.utils.exceptions import AuthenticationError, ValidationError
from pizza_shared.utils.schemas import (
    MessageResponse,
    PaymentMethodCreate,
    PaymentStatusRequest,
    ProcessPaymentRequest,
    WebhookEvent,
)


router = APIRouter(prefix="/api", tags=["payments"])


# =============================================================================
# Payments
# =============================================================================


@router.post("/process-payment", response_model=PaymentResultOutput)
def process_payment(
    body: ProcessPaymentRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> PaymentResultOutput:
    """
    Pay for an order. The amount must equal what the order still owes
    (total minus promotion and loyalty discounts).
    """
    return PaymentService(uow, notifier).process_payment(user.id, body)


@router.post("/payment", response_model=PaymentResultOutput)
def confirm_payment(
    body: PaymentStatusRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> PaymentResultOutput:
    """Checkout callback: the client reports the gateway payment id."""
    return PaymentService(uow, notifier).confirm_payment(user.id, body.order_id, body.payment_id)


@router.post("/razorpay-webhook", response_model=WebhookResultOutput)
async def razorpay_webhook(
    request: Request,
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> WebhookResultOutput:
    body = await request.body()

    if settings.razorpay_webhook_secret:
        signature = request.headers.get(SIGNATURE_HEADER)
        if not verify_signature(settings.razorpay_webhook_secret, body, signature):
            logger.warning("Webhook signature rejected", has_signature=signature is not None)
            raise AuthenticationError("Invalid webhook signature")

    try:
        event = WebhookEvent.model_validate_json(body)
    except PydanticValidationError as e:
        raise ValidationError("Invalid webhook payload", errors=e.error_count())

    # Database work stays off the event loop
    return await run_in_threadpool(PaymentService(uow, notifier).handle_webhook, event)


# =============================================================================
# Saved payment methods
# =============================================================================


@router.get("/payment-methods", response_model=list[PaymentMethodOutput])
def list_payment_methods(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[PaymentMethodOutput]:
    return ProfileService(uow).list_payment_methods(user.id)


@router.post(
    "/payment-methods",
    response_model=PaymentMethodOutput,
    status_code=status.HTTP_201_CREATED,
)
def add_payment_method(
    body: PaymentMethodCreate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> PaymentMethodOutput:
    """Only the last four digits of a card are kept; the CVV is discarded."""
    return ProfileService(uow).add_payment_method(user.id, body)


@router.delete("/payment-methods/{method_id}", response_model=MessageResponse)
def delete_payment_method(
    method_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    ProfileService(uow).delete_payment_method(user.id, method_id)
    return MessageResponse(message="Payment method deleted")


@router.post("/payment-methods/{method_id}/default", response_model=PaymentMethodOutput)
def set_default_payment_method(
    method_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> PaymentMethodOutput:
    return ProfileService(uow).set_default_payment_method(user.id, method_id)
