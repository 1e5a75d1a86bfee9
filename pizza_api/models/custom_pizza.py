"""
Custom Pizza Model: a saved configuration a customer can publish and others can like.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class CustomPizza(Base):
    """
    pizza_config holds the PizzaConfiguration ids as submitted; they are
    checked against the catalog whenever the configuration is written.
    """

    __tablename__ = "custom_pizzas"
    __table_args__ = (CheckConstraint("likes >= 0", name="chk_custom_pizzas_likes_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[Optional[str]] = mapped_column(Text)
    pizza_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
