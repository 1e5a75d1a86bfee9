"""
Promotions and loyalty points.
"""

from fastapi import APIRouter, Depends

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_notifier, get_optional_user, get_uow
from pizza_api.services.domain import LoyaltyService, NotificationService, PromotionService
from pizza_api.services.domain.loyalty_service import LoyaltyBalanceOutput, RedemptionOutput
from pizza_api.services.domain.promotion_service import PromotionOutput, PromotionValidationOutput
from pizza_shared.utils.schemas import LoyaltyRedeemRequest, PromotionValidateRequest


router = APIRouter(prefix="/api", tags=["promotions"])


@router.get("/promotions", response_model=list[PromotionOutput])
def list_promotions(
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[PromotionOutput]:
    """Admins see every promotion; everyone else sees active ones that have not ended."""
    is_admin = user is not None and user.is_admin
    return PromotionService(uow).list_promotions(include_inactive=is_admin)


@router.post("/promotions/validate", response_model=PromotionValidationOutput)
def validate_promotion(
    body: PromotionValidateRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> PromotionValidationOutput:
    """404 when the code does not apply to the amount."""
    return PromotionService(uow).validate(body.code, body.order_amount)


# =============================================================================
# Loyalty
# =============================================================================


@router.get("/loyalty-points", response_model=LoyaltyBalanceOutput)
def get_loyalty_points(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> LoyaltyBalanceOutput:
    return LoyaltyService(uow).get_balance(user.id)


@router.post("/loyalty-points/redeem", response_model=RedemptionOutput)
def redeem_loyalty_points(
    body: LoyaltyRedeemRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> RedemptionOutput:
    return LoyaltyService(uow, notifier).redeem(user.id, body.points, body.order_id)
