"""
Promotion code management. Codes are immutable once created.
"""

from fastapi import APIRouter, Depends, status

from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_uow
from pizza_api.services.domain import PromotionService
from pizza_api.services.domain.promotion_service import PromotionOutput
from pizza_shared.utils.schemas import PromotionCreate, PromotionUpdate


router = APIRouter(tags=["admin-promotions"])


@router.get("/promotions", response_model=list[PromotionOutput])
def list_promotions(uow: UnitOfWork = Depends(get_uow)) -> list[PromotionOutput]:
    return PromotionService(uow).list_promotions(include_inactive=True)


@router.post("/promotions", response_model=PromotionOutput, status_code=status.HTTP_201_CREATED)
def create_promotion(
    body: PromotionCreate,
    uow: UnitOfWork = Depends(get_uow),
) -> PromotionOutput:
    return PromotionService(uow).create_promotion(**body.model_dump())


@router.patch("/promotions/{promotion_id}", response_model=PromotionOutput)
def update_promotion(
    promotion_id: int,
    body: PromotionUpdate,
    uow: UnitOfWork = Depends(get_uow),
) -> PromotionOutput:
    return PromotionService(uow).update_promotion(promotion_id, **body.model_dump(exclude_unset=True))
