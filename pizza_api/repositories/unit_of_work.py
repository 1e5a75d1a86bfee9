"""
Unit of work: one transaction boundary around a group of repository writes.

    with uow:
        order = uow.orders.create(...)
        if not uow.toppings.decrement(topping_id, "stock", 2):
            raise InsufficientStockError(...)

Leaving the block normally commits; leaving it with an exception rolls
everything back and re-raises. Blocks may nest; only the outermost one
commits or rolls back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from sqlalchemy.orm import Session

from pizza_shared.config.constants import CatalogKind
from pizza_shared.config.logging import get_logger
from pizza_shared.infrastructure.db import safe_commit
from pizza_api.models import (
    CustomPizza,
    Notification,
    Order,
    OrderItem,
    PaymentMethod,
    PizzaBase,
    PizzaCheese,
    PizzaSauce,
    PizzaTopping,
    Promotion,
    Review,
    SubscriptionPlan,
    User,
    UserAddress,
    UserSubscription,
)
from .base import Repository
from .memory import InMemoryRepository, UndoStep
from .sql import SqlRepository

logger = get_logger(__name__)

# attribute name on the unit of work -> model
REPOSITORY_MODELS: dict[str, type] = {
    "users": User,
    "addresses": UserAddress,
    "payment_methods": PaymentMethod,
    "bases": PizzaBase,
    "sauces": PizzaSauce,
    "cheeses": PizzaCheese,
    "toppings": PizzaTopping,
    "orders": Order,
    "order_items": OrderItem,
    "reviews": Review,
    "promotions": Promotion,
    "plans": SubscriptionPlan,
    "subscriptions": UserSubscription,
    "notifications": Notification,
    "custom_pizzas": CustomPizza,
}

CATALOG_ATTRS: dict[str, str] = {
    CatalogKind.BASE: "bases",
    CatalogKind.SAUCE: "sauces",
    CatalogKind.CHEESE: "cheeses",
    CatalogKind.TOPPING: "toppings",
}


class UnitOfWork(ABC):
    """Repositories for every entity plus the transaction boundary."""

    users: Repository[User]
    addresses: Repository[UserAddress]
    payment_methods: Repository[PaymentMethod]
    bases: Repository[PizzaBase]
    sauces: Repository[PizzaSauce]
    cheeses: Repository[PizzaCheese]
    toppings: Repository[PizzaTopping]
    orders: Repository[Order]
    order_items: Repository[OrderItem]
    reviews: Repository[Review]
    promotions: Repository[Promotion]
    plans: Repository[SubscriptionPlan]
    subscriptions: Repository[UserSubscription]
    notifications: Repository[Notification]
    custom_pizzas: Repository[CustomPizza]

    def __init__(self) -> None:
        self._depth = 0
        self._after_commit: list[Callable[[], None]] = []

    def catalog(self, kind: str) -> Repository:
        """Repository for one of the four component tables."""
        return getattr(self, CATALOG_ATTRS[kind])

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once the outermost block commits. Dropped on rollback."""
        if self._depth == 0:
            callback()
        else:
            self._after_commit.append(callback)

    def __enter__(self) -> UnitOfWork:
        self._depth += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._depth -= 1
        if self._depth > 0:
            return False

        callbacks, self._after_commit = self._after_commit, []
        if exc_type is not None:
            self.rollback()
            logger.debug("Unit of work rolled back", error=type(exc).__name__)
            return False

        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

        for callback in callbacks:
            callback()
        return False

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


class SqlUnitOfWork(UnitOfWork):
    """Unit of work over one SQLAlchemy session and its database transaction."""

    def __init__(self, db: Session):
        super().__init__()
        self.session = db
        for attr, model in REPOSITORY_MODELS.items():
            setattr(self, attr, SqlRepository(db, model))

    def commit(self) -> None:
        safe_commit(self.session)

    def rollback(self) -> None:
        self.session.rollback()


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of work over in-memory repositories. Writes are journaled and a
    rollback replays the compensating steps newest-first.
    """

    def __init__(self) -> None:
        super().__init__()
        self._journal: list[UndoStep] = []
        self.commits = 0
        self.rollbacks = 0
        for attr, model in REPOSITORY_MODELS.items():
            setattr(self, attr, InMemoryRepository(model, self._record_undo))

    def _record_undo(self, step: UndoStep) -> None:
        # Writes outside a transaction block are final
        if self._depth > 0:
            self._journal.append(step)

    def commit(self) -> None:
        self._journal.clear()
        self.commits += 1

    def rollback(self) -> None:
        while self._journal:
            undo = self._journal.pop()
            undo()
        self.rollbacks += 1
