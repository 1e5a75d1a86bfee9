"""
Recommendation endpoints. Read-only heuristics over order history and the catalog.
"""

from fastapi import APIRouter, Depends

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_uow
from pizza_api.services.domain import RecommendationService
from pizza_api.services.domain.catalog_service import CatalogItemOutput
from pizza_api.services.domain.recommendation_service import PersonalizedOutput, PizzaSuggestion
from pizza_shared.utils.schemas import PizzaConfiguration


router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


@router.get("/toppings", response_model=list[CatalogItemOutput])
def recommended_toppings(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[CatalogItemOutput]:
    return RecommendationService(uow).recommended_toppings(user.id)


@router.get("/popular", response_model=list[PizzaSuggestion])
def popular_configurations(uow: UnitOfWork = Depends(get_uow)) -> list[PizzaSuggestion]:
    return RecommendationService(uow).popular_configurations()


@router.post("/similar", response_model=list[PizzaSuggestion])
def similar_configurations(
    body: PizzaConfiguration,
    uow: UnitOfWork = Depends(get_uow),
) -> list[PizzaSuggestion]:
    return RecommendationService(uow).similar_configurations(body)


@router.get("/personalized", response_model=PersonalizedOutput)
def personalized(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> PersonalizedOutput:
    return RecommendationService(uow).personalized(user.id)
