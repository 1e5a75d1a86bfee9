"""
SQLAlchemy ORM Models Package.

- base: Base class, timestamp helpers
- user: User, UserAddress, PaymentMethod
- catalog: PizzaBase, PizzaSauce, PizzaCheese, PizzaTopping
- order: Order, OrderItem, Review
- promotion: Promotion
- subscription: SubscriptionPlan, UserSubscription
- notification: Notification
- custom_pizza: CustomPizza
"""

from .base import Base, TimestampMixin, as_utc, utcnow
from .user import User, UserAddress, PaymentMethod
from .catalog import (
    CATALOG_MODELS,
    CatalogItemMixin,
    PizzaBase,
    PizzaCheese,
    PizzaSauce,
    PizzaTopping,
)
from .promotion import Promotion
from .subscription import SubscriptionPlan, UserSubscription
from .order import Order, OrderItem, Review
from .notification import Notification
from .custom_pizza import CustomPizza

__all__ = [
    "Base",
    "TimestampMixin",
    "as_utc",
    "utcnow",
    "User",
    "UserAddress",
    "PaymentMethod",
    "CATALOG_MODELS",
    "CatalogItemMixin",
    "PizzaBase",
    "PizzaSauce",
    "PizzaCheese",
    "PizzaTopping",
    "Promotion",
    "SubscriptionPlan",
    "UserSubscription",
    "Order",
    "OrderItem",
    "Review",
    "Notification",
    "CustomPizza",
]
