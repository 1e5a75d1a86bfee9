"""
Custom pizzas: saved configurations customers can publish, like and share.

Reads are open to anonymous callers (public pizzas only). Writes need a
session, and edits are limited to the pizza's owner.
"""

from fastapi import APIRouter, Depends, Request, status

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_notifier, get_optional_user, get_uow
from pizza_api.services.domain import CustomPizzaService, NotificationService
from pizza_api.services.domain.custom_pizza_service import CustomPizzaOutput, ShareOutput
from pizza_shared.utils.schemas import CustomPizzaCreate, CustomPizzaUpdate, MessageResponse


router = APIRouter(prefix="/api/custom-pizzas", tags=["custom-pizzas"])


def _viewer_id(user: User | None) -> int | None:
    return user.id if user else None


@router.get("", response_model=list[CustomPizzaOutput])
def list_custom_pizzas(
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[CustomPizzaOutput]:
    return CustomPizzaService(uow).list_visible(_viewer_id(user))


# Registered before /{pizza_id} so "popular" is not parsed as an id
@router.get("/popular", response_model=list[CustomPizzaOutput])
def popular_custom_pizzas(uow: UnitOfWork = Depends(get_uow)) -> list[CustomPizzaOutput]:
    return CustomPizzaService(uow).popular()


@router.get("/{pizza_id}", response_model=CustomPizzaOutput)
def get_custom_pizza(
    pizza_id: int,
    user: User | None = Depends(get_optional_user),
    uow: UnitOfWork = Depends(get_uow),
) -> CustomPizzaOutput:
    return CustomPizzaService(uow).get(pizza_id, _viewer_id(user))


@router.post("", response_model=CustomPizzaOutput, status_code=status.HTTP_201_CREATED)
def create_custom_pizza(
    body: CustomPizzaCreate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> CustomPizzaOutput:
    return CustomPizzaService(uow).create(user.id, body)


@router.patch("/{pizza_id}", response_model=CustomPizzaOutput)
def update_custom_pizza(
    pizza_id: int,
    body: CustomPizzaUpdate,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> CustomPizzaOutput:
    return CustomPizzaService(uow).update(pizza_id, user.id, body)


@router.delete("/{pizza_id}", response_model=MessageResponse)
def delete_custom_pizza(
    pizza_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    CustomPizzaService(uow).delete(pizza_id, user.id)
    return MessageResponse(message="Custom pizza deleted")


@router.post("/{pizza_id}/like", response_model=CustomPizzaOutput)
def like_custom_pizza(
    pizza_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> CustomPizzaOutput:
    return CustomPizzaService(uow, notifier).like(pizza_id, user.id)


@router.post("/{pizza_id}/share", response_model=ShareOutput)
def share_custom_pizza(
    pizza_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
    notifier: NotificationService = Depends(get_notifier),
) -> ShareOutput:
    return CustomPizzaService(uow, notifier).share(pizza_id, user.id, str(request.base_url))
