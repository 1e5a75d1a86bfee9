"""
User Models: User, UserAddress, PaymentMethod.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pizza_shared.config.constants import MembershipTier
from .base import Base, utcnow


class User(Base):
    """
    A customer or administrator account.

    ``loyalty_points`` is guarded by a CHECK constraint in addition to the
    conditional decrement used on redemption.
    ``session_version`` is embedded in session tokens; incrementing it
    revokes every outstanding session.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verification_token: Mapped[Optional[str]] = mapped_column(String(128))
    reset_token: Mapped[Optional[str]] = mapped_column(String(128), index=True)
    reset_token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    profile_picture: Mapped[Optional[str]] = mapped_column(Text)
    loyalty_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    membership_tier: Mapped[str] = mapped_column(
        String(20), default=MembershipTier.BRONZE, nullable=False
    )
    session_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("loyalty_points >= 0", name="chk_user_loyalty_points_non_negative"),
    )


class UserAddress(Base):
    """Saved delivery address. At most one per user has ``is_default``."""

    __tablename__ = "user_addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address_line1: Mapped[str] = mapped_column(Text, nullable=False)
    address_line2: Mapped[Optional[str]] = mapped_column(Text)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(60), default="USA", nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def one_line(self) -> str:
        parts = [self.address_line1, self.address_line2, self.city, self.state, self.postal_code, self.country]
        return ", ".join(p for p in parts if p)


class PaymentMethod(Base):
    """
    Saved payment method. Only the last four digits of a card are kept and
    the CVV is never stored. ``gateway_token`` is the mocked gateway reference.
    """

    __tablename__ = "payment_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    last_four: Mapped[Optional[str]] = mapped_column(String(4))
    expiry_month: Mapped[Optional[int]] = mapped_column(Integer)
    expiry_year: Mapped[Optional[int]] = mapped_column(Integer)
    cardholder_name: Mapped[Optional[str]] = mapped_column(String(100))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    gateway_token: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
