"""
Subscription plan management and the subscriber list.
"""

from fastapi import APIRouter, Depends, status

from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_uow
from pizza_api.services.domain import SubscriptionService
from pizza_api.services.domain.subscription_service import (
    SubscriptionPlanOutput,
    UserSubscriptionOutput,
)
from pizza_shared.utils.schemas import PlanCreate, PlanUpdate


router = APIRouter(tags=["admin-subscriptions"])


@router.get("/subscription-plans", response_model=list[SubscriptionPlanOutput])
def list_plans(uow: UnitOfWork = Depends(get_uow)) -> list[SubscriptionPlanOutput]:
    return SubscriptionService(uow).list_plans(include_inactive=True)


@router.post(
    "/subscription-plans",
    response_model=SubscriptionPlanOutput,
    status_code=status.HTTP_201_CREATED,
)
def create_plan(body: PlanCreate, uow: UnitOfWork = Depends(get_uow)) -> SubscriptionPlanOutput:
    return SubscriptionService(uow).create_plan(**body.model_dump())


@router.patch("/subscription-plans/{plan_id}", response_model=SubscriptionPlanOutput)
def update_plan(
    plan_id: int,
    body: PlanUpdate,
    uow: UnitOfWork = Depends(get_uow),
) -> SubscriptionPlanOutput:
    return SubscriptionService(uow).update_plan(plan_id, **body.model_dump(exclude_unset=True))


@router.post("/subscription-plans/{plan_id}/toggle", response_model=SubscriptionPlanOutput)
def toggle_plan(plan_id: int, uow: UnitOfWork = Depends(get_uow)) -> SubscriptionPlanOutput:
    return SubscriptionService(uow).toggle_plan(plan_id)


@router.get("/user-subscriptions", response_model=list[UserSubscriptionOutput])
def list_subscriptions(uow: UnitOfWork = Depends(get_uow)) -> list[UserSubscriptionOutput]:
    return SubscriptionService(uow).list_all()
