"""
Catalog router: the four pizza component lists.

Customers only see items in stock; admins see everything.
"""

from fastapi import APIRouter, Depends

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_optional_user, get_uow
from pizza_api.services.domain import CatalogService
from pizza_api.services.domain.catalog_service import CatalogItemOutput
from pizza_shared.config.constants import CatalogKind
from pizza_shared.utils.exceptions import ValidationError


router = APIRouter(prefix="/api", tags=["catalog"])


def resolve_kind(segment: str) -> str:
    """Accept 'base' or 'bases' style path segments."""
    if segment in CatalogKind.ALL:
        return segment
    if segment in CatalogKind.PLURALS:
        return CatalogKind.PLURALS[segment]
    raise ValidationError("Invalid inventory type", type=segment)


def _list(kind: str, user: User | None, uow: UnitOfWork) -> list[CatalogItemOutput]:
    is_admin = user is not None and user.is_admin
    return CatalogService(uow).list_items(kind, include_out_of_stock=is_admin)


@router.get("/pizza-bases", response_model=list[CatalogItemOutput])
def list_bases(
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[CatalogItemOutput]:
    return _list(CatalogKind.BASE, user, uow)


@router.get("/pizza-sauces", response_model=list[CatalogItemOutput])
def list_sauces(
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[CatalogItemOutput]:
    return _list(CatalogKind.SAUCE, user, uow)


@router.get("/pizza-cheeses", response_model=list[CatalogItemOutput])
def list_cheeses(
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[CatalogItemOutput]:
    return _list(CatalogKind.CHEESE, user, uow)


@router.get("/pizza-toppings", response_model=list[CatalogItemOutput])
def list_toppings(
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[CatalogItemOutput]:
    return _list(CatalogKind.TOPPING, user, uow)
