"""
Order Models: Order, OrderItem, Review.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from pizza_shared.config.constants import OrderStatus, PaymentStatus
from .base import Base, TimestampMixin


class Order(TimestampMixin, Base):
    """
    A customer checkout.

    Amounts:
    - total_amount: sum of the cart lines as submitted by the client
    - discount_amount: promotion discount
    - loyalty_discount_amount: value of redeemed points
    The amount owed is ``total - discount - loyalty discount`` (see payable_amount).
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(30), default=OrderStatus.PENDING, nullable=False, index=True
    )
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)
    payment_id: Mapped[Optional[str]] = mapped_column(String(100))
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING, nullable=False
    )
    payment_method_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("payment_methods.id")
    )

    # Delivery
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    contact_number: Mapped[str] = mapped_column(String(30), nullable=False)
    delivery_notes: Mapped[Optional[str]] = mapped_column(Text)
    estimated_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    actual_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    delivery_person_id: Mapped[Optional[int]] = mapped_column(Integer)
    tracking_url: Mapped[Optional[str]] = mapped_column(Text)

    # Discounts
    promotion_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("promotions.id"))
    discount_code: Mapped[Optional[str]] = mapped_column(String(50))
    discount_amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    loyalty_points_redeemed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loyalty_discount_amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    loyalty_points_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Subscriptions
    is_subscription_order: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    subscription_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("user_subscriptions.id")
    )

    __table_args__ = (
        CheckConstraint("total_amount > 0", name="chk_order_total_positive"),
        CheckConstraint("discount_amount >= 0", name="chk_order_discount_non_negative"),
    )

    @property
    def payable_amount(self) -> float:
        owed = self.total_amount - (self.discount_amount or 0.0) - (self.loyalty_discount_amount or 0.0)
        return round(max(owed, 0.0), 2)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETED


class OrderItem(Base):
    """
    One cart line. ``pizza_details`` is a snapshot of the configuration at
    order time: each slot holds ``{"kind", "id", "name", "price"}``.
    """

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    pizza_details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_order_item_quantity_positive"),
    )


class Review(TimestampMixin, Base):
    """Customer review of a delivered order, one per order."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="chk_review_rating_range"),
        UniqueConstraint("order_id", name="uq_review_order"),
    )
