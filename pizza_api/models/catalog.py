"""
Catalog Models: the four parallel pizza component tables.

Bases, sauces, cheeses and toppings share one shape; toppings add a
vegetarian flag.
"""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlalchemy import Boolean, CheckConstraint, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from pizza_shared.config.constants import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_STOCK,
    CatalogKind,
)
from .base import Base


class CatalogItemMixin:
    """Columns shared by every pizza component table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(Text)
    stock: Mapped[int] = mapped_column(Integer, default=DEFAULT_STOCK, nullable=False)
    threshold: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_LOW_STOCK_THRESHOLD, nullable=False
    )

    kind: ClassVar[str] = ""

    @declared_attr.directive
    def __table_args__(cls):
        return (CheckConstraint("stock >= 0", name=f"chk_{cls.__tablename__}_stock_non_negative"),)

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.threshold


class PizzaBase(CatalogItemMixin, Base):
    __tablename__ = "pizza_bases"
    kind = CatalogKind.BASE


class PizzaSauce(CatalogItemMixin, Base):
    __tablename__ = "pizza_sauces"
    kind = CatalogKind.SAUCE


class PizzaCheese(CatalogItemMixin, Base):
    __tablename__ = "pizza_cheeses"
    kind = CatalogKind.CHEESE


class PizzaTopping(CatalogItemMixin, Base):
    __tablename__ = "pizza_toppings"
    kind = CatalogKind.TOPPING

    is_veg: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


CATALOG_MODELS: dict[str, type[CatalogItemMixin]] = {
    CatalogKind.BASE: PizzaBase,
    CatalogKind.SAUCE: PizzaSauce,
    CatalogKind.CHEESE: PizzaCheese,
    CatalogKind.TOPPING: PizzaTopping,
}
