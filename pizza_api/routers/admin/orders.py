"""
Order lifecycle endpoints. Customers have no write path to status.
"""

from fastapi import APIRouter, Depends

from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_notifier, get_uow
from pizza_api.services.domain import NotificationService, OrderService
from pizza_api.services.domain.order_service import OrderOutput
from pizza_shared.utils.schemas import OrderStatusUpdate, OrderTrackingUpdate


router = APIRouter(tags=["admin-orders"])


@router.get("/orders", response_model=list[OrderOutput])
def list_orders(
    status: str | None = None,
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> list[OrderOutput]:
    return OrderService(uow, notifier).list_all(status)


@router.patch("/orders/{order_id}/status", response_model=OrderOutput)
def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> OrderOutput:
    """Delivered and cancelled orders are final (409)."""
    return OrderService(uow, notifier).update_status(order_id, body.status)


@router.patch("/orders/{order_id}/tracking", response_model=OrderOutput)
def update_order_tracking(
    order_id: int,
    body: OrderTrackingUpdate,
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> OrderOutput:
    return OrderService(uow, notifier).update_tracking(order_id, body)


@router.post("/orders/{order_id}/delivered", response_model=OrderOutput)
def mark_order_delivered(
    order_id: int,
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> OrderOutput:
    return OrderService(uow, notifier).mark_delivered(order_id)
