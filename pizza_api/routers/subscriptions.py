"""
Subscription plans and user subscriptions.
"""

from fastapi import APIRouter, Depends, status

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_notifier, get_uow
from pizza_api.services.domain import NotificationService, SubscriptionService
from pizza_api.services.domain.subscription_service import (
    SubscriptionPlanOutput,
    UserSubscriptionOutput,
)
from pizza_shared.utils.schemas import SubscribeRequest


router = APIRouter(prefix="/api", tags=["subscriptions"])


@router.get("/subscription-plans", response_model=list[SubscriptionPlanOutput])
def list_plans(uow: UnitOfWork = Depends(get_uow)) -> list[SubscriptionPlanOutput]:
    return SubscriptionService(uow).list_plans()


@router.get("/subscription-plans/{plan_id}", response_model=SubscriptionPlanOutput)
def get_plan(plan_id: int, uow: UnitOfWork = Depends(get_uow)) -> SubscriptionPlanOutput:
    return SubscriptionService(uow).get_plan(plan_id)


@router.post(
    "/subscribe",
    response_model=UserSubscriptionOutput,
    status_code=status.HTTP_201_CREATED,
)
def subscribe(
    body: SubscribeRequest,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> UserSubscriptionOutput:
    return SubscriptionService(uow, notifier).subscribe(user.id, body)


@router.get("/user-subscriptions", response_model=list[UserSubscriptionOutput])
def list_my_subscriptions(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[UserSubscriptionOutput]:
    return SubscriptionService(uow).list_for_user(user.id)


@router.get("/user-subscriptions/{subscription_id}", response_model=UserSubscriptionOutput)
def get_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> UserSubscriptionOutput:
    return SubscriptionService(uow).get_subscription(subscription_id, user.id, user.is_admin)


# =============================================================================
# State transitions: active <-> paused, active|paused -> cancelled
# =============================================================================


def _transition(
    action: str,
    subscription_id: int,
    user: User,
    uow: UnitOfWork,
    notifier: NotificationService,
) -> UserSubscriptionOutput:
    return SubscriptionService(uow, notifier).transition(
        subscription_id, user.id, action, is_admin=user.is_admin
    )


@router.post("/user-subscriptions/{subscription_id}/pause", response_model=UserSubscriptionOutput)
def pause_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> UserSubscriptionOutput:
    return _transition("pause", subscription_id, user, uow, notifier)


@router.post("/user-subscriptions/{subscription_id}/resume", response_model=UserSubscriptionOutput)
def resume_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> UserSubscriptionOutput:
    return _transition("resume", subscription_id, user, uow, notifier)


@router.post("/user-subscriptions/{subscription_id}/cancel", response_model=UserSubscriptionOutput)
def cancel_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> UserSubscriptionOutput:
    return _transition("cancel", subscription_id, user, uow, notifier)
