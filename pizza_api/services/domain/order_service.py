"""
Order Service.

Order placement is one transaction:
1. Every configuration is resolved against the catalog (unknown ids -> 400)
2. The order row and one item row per cart line are created
3. Each distinct component's stock drops by the total quantity that
   references it, through a guarded decrement (stock may not go below 0)
4. A failed guard raises InsufficientStockError and nothing is kept

The response lists the referenced components whose stock is now at or
below their threshold. Client-submitted prices are stored as given.

Lifecycle writes (status, tracking, delivery) are admin-only.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from pizza_api.models import Order, OrderItem, Review, utcnow
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import NotificationType, OrderStatus, PaymentStatus
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from pizza_shared.utils.schemas import OrderCreateRequest, OrderTrackingUpdate
from .catalog_service import CatalogService, LowStockItem, low_stock_entry
from .notification_service import NotificationService

logger = get_logger(__name__)


# =============================================================================
# Output Schemas
# =============================================================================


class OrderItemOutput(BaseModel):
    id: int
    order_id: int
    pizza_details: dict[str, Any]
    price: float
    quantity: int
    special_instructions: str | None = None

    class Config:
        from_attributes = True


class OrderOutput(BaseModel):
    id: int
    user_id: int
    status: str
    total_amount: float
    payment_id: str | None = None
    payment_status: str
    payment_method_id: int | None = None
    delivery_address: str
    contact_number: str
    delivery_notes: str | None = None
    estimated_delivery_time: datetime | None = None
    actual_delivery_time: datetime | None = None
    delivery_person_id: int | None = None
    tracking_url: str | None = None
    promotion_id: int | None = None
    discount_code: str | None = None
    discount_amount: float
    loyalty_points_redeemed: int
    loyalty_discount_amount: float
    loyalty_points_earned: int
    payable_amount: float
    is_subscription_order: bool
    subscription_id: int | None = None
    created_at: datetime
    updated_at: datetime | None = None
    items: list[OrderItemOutput] = []

    class Config:
        from_attributes = True


class PlacedOrderOutput(BaseModel):
    order: OrderOutput
    items: list[OrderItemOutput]
    low_stock_items: list[LowStockItem]


class ReviewOutput(BaseModel):
    id: int
    user_id: int
    order_id: int
    rating: int
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True


def stock_demand(data: OrderCreateRequest) -> Counter[tuple[str, int]]:
    """Units needed per (kind, id) across all lines. A repeated topping counts twice."""
    demand: Counter[tuple[str, int]] = Counter()
    for line in data.items:
        for ref in line.pizza.component_ids():
            demand[ref] += line.quantity
    return demand


class OrderService:
    """
    Business rules:
    - Orders belong to the user who placed them; only the owner or an admin can read them
    - Stock never goes negative; a shortfall cancels the whole placement
    - Delivered and cancelled orders accept no further status writes
    - Reviews are allowed once per delivered order, by its owner
    """

    def __init__(self, uow: UnitOfWork, notifier: NotificationService):
        self._uow = uow
        self._notifier = notifier
        self._catalog = CatalogService(uow)

    # =========================================================================
    # Output helpers
    # =========================================================================

    def _items_for(self, order_id: int) -> list[OrderItem]:
        return list(self._uow.order_items.find_by(order_id=order_id))

    def to_output(self, order: Order, items: list[OrderItem] | None = None) -> OrderOutput:
        output = OrderOutput.model_validate(order)
        if items is None:
            items = self._items_for(order.id)
        output.items = [OrderItemOutput.model_validate(i) for i in items]
        return output

    def get_entity(self, order_id: int) -> Order:
        order = self._uow.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def get_owned(self, order_id: int, user_id: int, is_admin: bool = False) -> Order:
        order = self.get_entity(order_id)
        if order.user_id != user_id and not is_admin:
            raise ForbiddenError("access this order", order_id=order_id, user_id=user_id)
        return order

    # =========================================================================
    # Placement
    # =========================================================================

    def place_order(self, user_id: int, data: OrderCreateRequest) -> PlacedOrderOutput:
        snapshots = [self._catalog.snapshot_configuration(line.pizza) for line in data.items]
        demand = stock_demand(data)

        if data.payment_method_id is not None:
            method = self._uow.payment_methods.get(data.payment_method_id)
            if method is None or method.user_id != user_id:
                raise ValidationError("Unknown payment method", payment_method_id=data.payment_method_id)

        with self._uow:
            order = self._uow.orders.create(
                user_id=user_id,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                total_amount=round(data.total_amount, 2),
                delivery_address=data.delivery_address,
                contact_number=data.contact_number,
                delivery_notes=data.delivery_notes,
                payment_method_id=data.payment_method_id,
            )

            items = [
                self._uow.order_items.create(
                    order_id=order.id,
                    pizza_details=snapshot,
                    price=round(line.price, 2),
                    quantity=line.quantity,
                    special_instructions=line.special_instructions,
                )
                for line, snapshot in zip(data.items, snapshots)
            ]

            low_stock: list[LowStockItem] = []
            # Sorted so concurrent placements touch rows in the same order
            for (kind, item_id), quantity in sorted(demand.items()):
                repo = self._uow.catalog(kind)
                if not repo.decrement(item_id, "stock", quantity, floor=0):
                    item = repo.get(item_id)
                    raise InsufficientStockError(
                        kind, item_id, item.name if item else str(item_id), quantity
                    )
                item = repo.get(item_id)
                if item.stock <= item.threshold:
                    low_stock.append(low_stock_entry(item))

            self._notifier.notify(
                user_id,
                NotificationType.ORDER_CREATED,
                "Order Placed",
                f"Your order #{order.id} has been placed successfully.",
                link_url=f"/orders/{order.id}",
            )

        logger.info(
            "Order placed",
            order_id=order.id,
            user_id=user_id,
            lines=len(items),
            total=order.total_amount,
            low_stock=len(low_stock),
        )
        if low_stock:
            logger.warning(
                "Components at or below threshold",
                items=[f"{i.kind}:{i.id}={i.stock}" for i in low_stock],
            )

        return PlacedOrderOutput(
            order=self.to_output(order, items),
            items=[OrderItemOutput.model_validate(i) for i in items],
            low_stock_items=low_stock,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_order(self, order_id: int, user_id: int, is_admin: bool = False) -> OrderOutput:
        return self.to_output(self.get_owned(order_id, user_id, is_admin))

    def list_for_user(self, user_id: int) -> list[OrderOutput]:
        orders = self._uow.orders.find_by(user_id=user_id, order_by="-created_at")
        return [self.to_output(o) for o in orders]

    def list_all(self, status: str | None = None) -> list[OrderOutput]:
        filters = {"status": status} if status else {}
        orders = self._uow.orders.find_by(order_by="-created_at", **filters)
        return [self.to_output(o) for o in orders]

    # =========================================================================
    # Admin lifecycle
    # =========================================================================

    def _ensure_mutable(self, order: Order) -> None:
        if order.status in OrderStatus.FINAL:
            raise InvalidStateError("Order", order.status, order_id=order.id)

    def update_status(self, order_id: int, status: str) -> OrderOutput:
        if status not in OrderStatus.ALL:
            raise ValidationError(f"Unknown order status '{status}'")

        with self._uow:
            order = self.get_entity(order_id)
            self._ensure_mutable(order)
            previous = order.status

            changes: dict[str, Any] = {"status": status}
            if status == OrderStatus.DELIVERED:
                changes["actual_delivery_time"] = utcnow()
            self._uow.orders.update(order, **changes)

            if status == OrderStatus.DELIVERED:
                self._notify_delivered(order)
            else:
                self._notifier.notify(
                    order.user_id,
                    NotificationType.ORDER_UPDATED,
                    "Order Status Updated",
                    f"Your order #{order.id} is now {status.replace('_', ' ')}.",
                    link_url=f"/orders/{order.id}",
                )

        logger.info("Order status updated", order_id=order_id, from_status=previous, to_status=status)
        return self.to_output(order)

    def update_tracking(self, order_id: int, data: OrderTrackingUpdate) -> OrderOutput:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No tracking fields provided")

        with self._uow:
            order = self.get_entity(order_id)
            self._ensure_mutable(order)
            self._uow.orders.update(order, **changes)

            eta = order.estimated_delivery_time
            message = f"Tracking information for order #{order.id} has been updated."
            if eta is not None:
                message += f" Estimated delivery: {eta.strftime('%Y-%m-%d %H:%M')} UTC."
            self._notifier.notify(
                order.user_id,
                NotificationType.ORDER_TRACKING,
                "Order Tracking Updated",
                message,
                link_url=order.tracking_url or f"/orders/{order.id}",
            )

        logger.info("Order tracking updated", order_id=order_id, fields=sorted(changes))
        return self.to_output(order)

    def mark_delivered(self, order_id: int) -> OrderOutput:
        with self._uow:
            order = self.get_entity(order_id)
            self._ensure_mutable(order)
            self._uow.orders.update(
                order,
                status=OrderStatus.DELIVERED,
                actual_delivery_time=utcnow(),
            )
            self._notify_delivered(order)

        logger.info("Order delivered", order_id=order_id)
        return self.to_output(order)

    def _notify_delivered(self, order: Order) -> None:
        self._notifier.notify(
            order.user_id,
            NotificationType.ORDER_DELIVERED,
            "Order Delivered",
            f"Your order #{order.id} has been delivered. Enjoy your pizza!",
            link_url=f"/orders/{order.id}",
        )

    # =========================================================================
    # Reviews
    # =========================================================================

    def add_review(self, user_id: int, order_id: int, rating: int, comment: str) -> ReviewOutput:
        with self._uow:
            order = self.get_owned(order_id, user_id)
            if order.status != OrderStatus.DELIVERED:
                raise ValidationError("Only delivered orders can be reviewed", order_id=order_id)
            if self._uow.reviews.first_by(order_id=order_id) is not None:
                raise ConflictError("This order has already been reviewed", order_id=order_id)

            review = self._uow.reviews.create(
                user_id=user_id,
                order_id=order_id,
                rating=rating,
                comment=comment.strip(),
            )

        logger.info("Review added", order_id=order_id, rating=rating)
        return ReviewOutput.model_validate(review)

    def list_reviews(self, order_id: int, user_id: int, is_admin: bool = False) -> list[ReviewOutput]:
        self.get_owned(order_id, user_id, is_admin)
        return [ReviewOutput.model_validate(r) for r in self._uow.reviews.find_by(order_id=order_id)]
