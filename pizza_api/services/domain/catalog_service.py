"""
Catalog & Inventory Service.

Handles the four pizza component tables:
- Customer listings hide items that are out of stock
- Admin stock updates (never below zero) and item creation
- Low-stock reporting (stock at or below the item's threshold)
- Resolving a PizzaConfiguration into the snapshot stored on order items
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from pizza_api.models import CatalogItemMixin
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import CatalogKind
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import NotFoundError, ValidationError
from pizza_shared.utils.schemas import PizzaConfiguration

logger = get_logger(__name__)


# =============================================================================
# Output Schemas
# =============================================================================


class CatalogItemOutput(BaseModel):
    id: int
    kind: str
    name: str
    description: str | None = None
    price: float
    image: str | None = None
    stock: int
    threshold: int
    is_veg: bool | None = None

    class Config:
        from_attributes = True


class LowStockItem(BaseModel):
    kind: str
    id: int
    name: str
    stock: int
    threshold: int


class InventoryOverview(BaseModel):
    bases: list[CatalogItemOutput]
    sauces: list[CatalogItemOutput]
    cheeses: list[CatalogItemOutput]
    toppings: list[CatalogItemOutput]
    low_stock: list[LowStockItem]


def component_snapshot(item: CatalogItemMixin) -> dict[str, Any]:
    """Tagged snapshot of one component as stored in OrderItem.pizza_details."""
    return {"kind": item.kind, "id": item.id, "name": item.name, "price": round(item.price, 2)}


def low_stock_entry(item: CatalogItemMixin) -> LowStockItem:
    return LowStockItem(
        kind=item.kind,
        id=item.id,
        name=item.name,
        stock=item.stock,
        threshold=item.threshold,
    )


class CatalogService:

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in CatalogKind.ALL:
            raise NotFoundError("Catalog type", kind)

    @staticmethod
    def to_output(item: CatalogItemMixin) -> CatalogItemOutput:
        return CatalogItemOutput(
            id=item.id,
            kind=item.kind,
            name=item.name,
            description=item.description,
            price=item.price,
            image=item.image,
            stock=item.stock,
            threshold=item.threshold,
            is_veg=getattr(item, "is_veg", None),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def list_items(self, kind: str, include_out_of_stock: bool = False) -> list[CatalogItemOutput]:
        """Items of one kind; out-of-stock items only when include_out_of_stock."""
        self._check_kind(kind)
        items = self._uow.catalog(kind).list_all(order_by="name")
        return [
            self.to_output(item) for item in items
            if include_out_of_stock or item.stock > 0
        ]

    def get_item(self, kind: str, item_id: int) -> CatalogItemMixin:
        self._check_kind(kind)
        item = self._uow.catalog(kind).get(item_id)
        if item is None:
            raise NotFoundError(f"Pizza {kind}", item_id)
        return item

    def low_stock(self) -> list[LowStockItem]:
        found: list[LowStockItem] = []
        for kind in CatalogKind.ALL:
            found.extend(
                low_stock_entry(item)
                for item in self._uow.catalog(kind).list_all()
                if item.stock <= item.threshold
            )
        return found

    def inventory_overview(self) -> InventoryOverview:
        return InventoryOverview(
            bases=self.list_items(CatalogKind.BASE, include_out_of_stock=True),
            sauces=self.list_items(CatalogKind.SAUCE, include_out_of_stock=True),
            cheeses=self.list_items(CatalogKind.CHEESE, include_out_of_stock=True),
            toppings=self.list_items(CatalogKind.TOPPING, include_out_of_stock=True),
            low_stock=self.low_stock(),
        )

    # =========================================================================
    # Admin writes
    # =========================================================================

    def create_item(self, kind: str, **fields: Any) -> CatalogItemOutput:
        self._check_kind(kind)
        if kind != CatalogKind.TOPPING:
            fields.pop("is_veg", None)
        if fields.get("stock") is not None and fields["stock"] < 0:
            raise ValidationError("Stock cannot be negative", field="stock")

        with self._uow:
            item = self._uow.catalog(kind).create(
                **{k: v for k, v in fields.items() if v is not None}
            )

        logger.info("Catalog item created", kind=kind, item_id=item.id, item_name=item.name)
        return self.to_output(item)

    def update_stock(self, kind: str, item_id: int, stock: int) -> CatalogItemOutput:
        if stock < 0:
            raise ValidationError("Stock cannot be negative", field="stock", value=stock)

        with self._uow:
            item = self.get_item(kind, item_id)
            self._uow.catalog(kind).update(item, stock=stock)

        logger.info("Stock updated", kind=kind, item_id=item_id, stock=stock)
        return self.to_output(item)

    # =========================================================================
    # Configuration resolution
    # =========================================================================

    def snapshot_configuration(self, config: PizzaConfiguration) -> dict[str, Any]:
        """
        Resolve every id in a configuration against the catalog.

        Returns the pizza_details snapshot:
            {"base": {...}, "sauce": {...} | None, "cheese": {...} | None, "toppings": [{...}, ...]}

        Raises:
            ValidationError: if any id does not reference a catalog row.
        """

        def resolve(kind: str, item_id: int) -> dict[str, Any]:
            item = self._uow.catalog(kind).get(item_id)
            if item is None:
                raise ValidationError(
                    f"Unknown pizza {kind}: {item_id}", kind=kind, item_id=item_id
                )
            return component_snapshot(item)

        return {
            "base": resolve(CatalogKind.BASE, config.base_id),
            "sauce": resolve(CatalogKind.SAUCE, config.sauce_id) if config.sauce_id else None,
            "cheese": resolve(CatalogKind.CHEESE, config.cheese_id) if config.cheese_id else None,
            "toppings": [resolve(CatalogKind.TOPPING, t) for t in config.topping_ids],
        }
