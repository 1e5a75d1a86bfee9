"""
Custom Pizza Service.

Customers save configurations under a name and may publish them. Visibility:
- public pizzas are visible to everyone, private ones only to their owner
- only the owner may edit or delete
- any signed-in user who can see a pizza may like or share it; the owner is
  notified when someone else does
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from pizza_api.models import CustomPizza
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.constants import Limits, NotificationType
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import ForbiddenError, NotFoundError
from pizza_shared.utils.schemas import CustomPizzaCreate, CustomPizzaUpdate, PizzaConfiguration
from .catalog_service import CatalogService
from .notification_service import NotificationService

logger = get_logger(__name__)


# =============================================================================
# Output Schemas
# =============================================================================


class CustomPizzaOutput(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None = None
    image: str | None = None
    pizza_config: dict[str, Any]
    likes: int
    is_public: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ShareOutput(BaseModel):
    success: bool
    shareable_link: str


class CustomPizzaService:

    def __init__(self, uow: UnitOfWork, notifier: NotificationService | None = None):
        self._uow = uow
        self._notifier = notifier

    def _checked_config(self, config: PizzaConfiguration) -> dict[str, Any]:
        # Unknown component ids raise ValidationError
        CatalogService(self._uow).snapshot_configuration(config)
        return config.model_dump()

    def _get(self, pizza_id: int) -> CustomPizza:
        pizza = self._uow.custom_pizzas.get(pizza_id)
        if pizza is None:
            raise NotFoundError("Custom pizza", pizza_id)
        return pizza

    def _get_visible(self, pizza_id: int, viewer_id: int | None) -> CustomPizza:
        pizza = self._get(pizza_id)
        if not pizza.is_public and pizza.user_id != viewer_id:
            raise ForbiddenError("view this custom pizza", pizza_id=pizza_id, user_id=viewer_id)
        return pizza

    def _get_owned(self, pizza_id: int, user_id: int) -> CustomPizza:
        pizza = self._get(pizza_id)
        if pizza.user_id != user_id:
            raise ForbiddenError("modify this custom pizza", pizza_id=pizza_id, user_id=user_id)
        return pizza

    def _notify_owner(self, pizza: CustomPizza, actor_id: int, type: str, title: str, verb: str) -> None:
        if self._notifier is None or pizza.user_id == actor_id:
            return
        actor = self._uow.users.get(actor_id)
        who = actor.username if actor else "Someone"
        self._notifier.notify(
            pizza.user_id,
            type,
            title,
            f'{who} {verb} your custom pizza "{pizza.name}".',
            link_url=f"/custom-pizzas/{pizza.id}",
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def list_visible(self, viewer_id: int | None) -> list[CustomPizzaOutput]:
        """Public pizzas plus the viewer's own private ones, newest first."""
        rows = self._uow.custom_pizzas.list_all(order_by="-created_at")
        return [
            CustomPizzaOutput.model_validate(p) for p in rows
            if p.is_public or p.user_id == viewer_id
        ]

    def popular(self, limit: int = Limits.MAX_POPULAR_CUSTOM_PIZZAS) -> list[CustomPizzaOutput]:
        rows = self._uow.custom_pizzas.find_by(is_public=True, order_by="-likes")
        return [CustomPizzaOutput.model_validate(p) for p in rows[:limit]]

    def get(self, pizza_id: int, viewer_id: int | None) -> CustomPizzaOutput:
        return CustomPizzaOutput.model_validate(self._get_visible(pizza_id, viewer_id))

    # =========================================================================
    # Owner writes
    # =========================================================================

    def create(self, user_id: int, data: CustomPizzaCreate) -> CustomPizzaOutput:
        config = self._checked_config(data.pizza_config)
        with self._uow:
            pizza = self._uow.custom_pizzas.create(
                user_id=user_id,
                name=data.name,
                description=data.description,
                image=data.image,
                pizza_config=config,
                is_public=data.is_public,
            )
        logger.info("Custom pizza created", pizza_id=pizza.id, user_id=user_id, is_public=pizza.is_public)
        return CustomPizzaOutput.model_validate(pizza)

    def update(self, pizza_id: int, user_id: int, data: CustomPizzaUpdate) -> CustomPizzaOutput:
        # description and image may be cleared with null; the other columns are required
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True, exclude={"pizza_config"}).items()
            if value is not None or key in ("description", "image")
        }
        with self._uow:
            pizza = self._get_owned(pizza_id, user_id)
            if data.pizza_config is not None:
                changes["pizza_config"] = self._checked_config(data.pizza_config)
            self._uow.custom_pizzas.update(pizza, **changes)
        logger.info("Custom pizza updated", pizza_id=pizza_id, fields=sorted(changes))
        return CustomPizzaOutput.model_validate(pizza)

    def delete(self, pizza_id: int, user_id: int) -> None:
        with self._uow:
            self._uow.custom_pizzas.delete(self._get_owned(pizza_id, user_id))
        logger.info("Custom pizza deleted", pizza_id=pizza_id, user_id=user_id)

    # =========================================================================
    # Social
    # =========================================================================

    def like(self, pizza_id: int, user_id: int) -> CustomPizzaOutput:
        with self._uow:
            pizza = self._get_visible(pizza_id, user_id)
            if not self._uow.custom_pizzas.increment(pizza.id, "likes"):
                raise NotFoundError("Custom pizza", pizza_id)
            self._notify_owner(pizza, user_id, NotificationType.PIZZA_LIKED, "Your Pizza Got a Like!", "liked")
        return CustomPizzaOutput.model_validate(pizza)

    def share(self, pizza_id: int, user_id: int, base_url: str) -> ShareOutput:
        with self._uow:
            pizza = self._get_visible(pizza_id, user_id)
            self._notify_owner(pizza, user_id, NotificationType.PIZZA_SHARED, "Your Pizza Was Shared!", "shared")
        return ShareOutput(success=True, shareable_link=f"{base_url.rstrip('/')}/shared-pizza/{pizza.id}")
