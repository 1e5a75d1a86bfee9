"""
Domain Services - application layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository / UnitOfWork (data access)
        ↓
    Model (entity)

Usage:
    from pizza_api.services.domain import OrderService

    # In router
    service = OrderService(uow, notifier)
    placed = service.place_order(user.id, body)
"""

from .notification_service import (
    BackgroundTaskDispatcher,
    NotificationService,
    NullDispatcher,
)
from .catalog_service import CatalogService
from .order_service import OrderService
from .promotion_service import PromotionService
from .loyalty_service import LoyaltyService
from .payment_service import PaymentService
from .subscription_service import SubscriptionService
from .recommendation_service import RecommendationService
from .auth_service import AuthService
from .profile_service import ProfileService
from .custom_pizza_service import CustomPizzaService

__all__ = [
    "BackgroundTaskDispatcher",
    "NotificationService",
    "NullDispatcher",
    "CatalogService",
    "OrderService",
    "PromotionService",
    "LoyaltyService",
    "PaymentService",
    "SubscriptionService",
    "RecommendationService",
    "AuthService",
    "ProfileService",
    "CustomPizzaService",
]
