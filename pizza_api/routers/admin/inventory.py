"""
Catalog and stock management.
"""

from fastapi import APIRouter, Depends, status

from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_uow
from pizza_api.routers.catalog import resolve_kind
from pizza_api.services.domain import CatalogService
from pizza_api.services.domain.catalog_service import (
    CatalogItemOutput,
    InventoryOverview,
    LowStockItem,
)
from pizza_shared.utils.schemas import CatalogItemCreate, StockUpdate


router = APIRouter(tags=["admin-inventory"])


@router.get("/inventory", response_model=InventoryOverview)
def inventory_overview(uow: UnitOfWork = Depends(get_uow)) -> InventoryOverview:
    return CatalogService(uow).inventory_overview()


@router.get("/inventory/low-stock", response_model=list[LowStockItem])
def low_stock(uow: UnitOfWork = Depends(get_uow)) -> list[LowStockItem]:
    """Items with stock at or below their threshold."""
    return CatalogService(uow).low_stock()


@router.patch("/inventory/{kind}/{item_id}", response_model=CatalogItemOutput)
def update_stock(
    kind: str,
    item_id: int,
    body: StockUpdate,
    uow: UnitOfWork = Depends(get_uow),
) -> CatalogItemOutput:
    return CatalogService(uow).update_stock(resolve_kind(kind), item_id, body.stock)


@router.post(
    "/pizza-{kind}",
    response_model=CatalogItemOutput,
    status_code=status.HTTP_201_CREATED,
)
def create_item(
    kind: str,
    body: CatalogItemCreate,
    uow: UnitOfWork = Depends(get_uow),
) -> CatalogItemOutput:
    return CatalogService(uow).create_item(resolve_kind(kind), **body.model_dump())


@router.patch("/pizza-{kind}/{item_id}/stock", response_model=CatalogItemOutput)
def update_item_stock(
    kind: str,
    item_id: int,
    body: StockUpdate,
    uow: UnitOfWork = Depends(get_uow),
) -> CatalogItemOutput:
    return CatalogService(uow).update_stock(resolve_kind(kind), item_id, body.stock)
