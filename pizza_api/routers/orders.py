"""
Customer order endpoints: placement, history, reviews and discounts.
"""

from fastapi import APIRouter, Depends, status

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_notifier, get_uow
from pizza_api.services.domain import NotificationService, OrderService, PromotionService
from pizza_api.services.domain.order_service import OrderOutput, PlacedOrderOutput, ReviewOutput
from pizza_api.services.domain.promotion_service import AppliedPromotionOutput
from pizza_shared.utils.schemas import ApplyPromotionRequest, OrderCreateRequest, ReviewCreate


router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/orders", response_model=PlacedOrderOutput, status_code=status.HTTP_201_CREATED)
def place_order(
    body: OrderCreateRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> PlacedOrderOutput:
    """
    Place an order.

    Stock for every referenced component is reserved in the same transaction;
    409 if any component runs short. The response lists components now at or
    below their low-stock threshold.
    """
    return OrderService(uow, notifier).place_order(user.id, body)


@router.get("/orders", response_model=list[OrderOutput])
def list_my_orders(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> list[OrderOutput]:
    return OrderService(uow, notifier).list_for_user(user.id)


@router.get("/user/orders", response_model=list[OrderOutput], include_in_schema=False)
def list_my_orders_legacy(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> list[OrderOutput]:
    return OrderService(uow, notifier).list_for_user(user.id)


@router.get("/orders/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> OrderOutput:
    """Owner or admin; anyone else gets 403."""
    return OrderService(uow, notifier).get_order(order_id, user.id, user.is_admin)


@router.post(
    "/orders/{order_id}/reviews",
    response_model=ReviewOutput,
    status_code=status.HTTP_201_CREATED,
)
def add_review(
    order_id: int,
    body: ReviewCreate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> ReviewOutput:
    return OrderService(uow, notifier).add_review(user.id, order_id, body.rating, body.comment)


@router.get("/orders/{order_id}/reviews", response_model=list[ReviewOutput])
def list_reviews(
    order_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> list[ReviewOutput]:
    return OrderService(uow, notifier).list_reviews(order_id, user.id, user.is_admin)


@router.post("/orders/{order_id}/apply-promotion", response_model=AppliedPromotionOutput)
def apply_promotion(
    order_id: int,
    body: ApplyPromotionRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> AppliedPromotionOutput:
    return PromotionService(uow, notifier).apply_to_order(user.id, order_id, body.code)
