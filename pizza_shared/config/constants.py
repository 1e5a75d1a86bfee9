"""
Centralized constants for the backend application.
Avoids magic strings for statuses, catalog kinds and notification types.

Usage:
    from pizza_shared.config.constants import OrderStatus, PaymentStatus

    if order.status == OrderStatus.DELIVERED:
        ...
"""

from typing import Final


# =============================================================================
# Orders
# =============================================================================


class OrderStatus:
    """Order lifecycle status constants, in kitchen order."""

    PENDING: Final[str] = "pending"
    RECEIVED: Final[str] = "received"
    PREPARING: Final[str] = "preparing"
    COOKING: Final[str] = "cooking"
    QUALITY_CHECK: Final[str] = "quality_check"
    PACKED: Final[str] = "packed"
    OUT_FOR_DELIVERY: Final[str] = "out_for_delivery"
    DELIVERED: Final[str] = "delivered"
    CANCELLED: Final[str] = "cancelled"

    ALL: Final[list[str]] = [
        PENDING, RECEIVED, PREPARING, COOKING, QUALITY_CHECK,
        PACKED, OUT_FOR_DELIVERY, DELIVERED, CANCELLED,
    ]
    # No further status writes once an order reaches one of these
    FINAL: Final[frozenset[str]] = frozenset({DELIVERED, CANCELLED})


class PaymentStatus:
    """Payment status constants."""

    PENDING: Final[str] = "pending"
    PROCESSING: Final[str] = "processing"
    COMPLETED: Final[str] = "completed"
    FAILED: Final[str] = "failed"
    REFUNDED: Final[str] = "refunded"

    ALL: Final[list[str]] = [PENDING, PROCESSING, COMPLETED, FAILED, REFUNDED]


# =============================================================================
# Catalog
# =============================================================================


class CatalogKind:
    """The four parallel pizza component tables."""

    BASE: Final[str] = "base"
    SAUCE: Final[str] = "sauce"
    CHEESE: Final[str] = "cheese"
    TOPPING: Final[str] = "topping"

    ALL: Final[list[str]] = [BASE, SAUCE, CHEESE, TOPPING]

    # URL segment used by the admin inventory routes
    PLURALS: Final[dict[str, str]] = {
        "bases": BASE,
        "sauces": SAUCE,
        "cheeses": CHEESE,
        "toppings": TOPPING,
    }


DEFAULT_STOCK: Final[int] = 100
DEFAULT_LOW_STOCK_THRESHOLD: Final[int] = 20


# =============================================================================
# Promotions
# =============================================================================


class DiscountType:
    PERCENTAGE: Final[str] = "percentage"
    FIXED: Final[str] = "fixed"

    ALL: Final[list[str]] = [PERCENTAGE, FIXED]


# =============================================================================
# Users & loyalty
# =============================================================================


class MembershipTier:
    BRONZE: Final[str] = "bronze"
    SILVER: Final[str] = "silver"
    GOLD: Final[str] = "gold"
    PLATINUM: Final[str] = "platinum"

    ALL: Final[list[str]] = [BRONZE, SILVER, GOLD, PLATINUM]


class PaymentMethodType:
    CREDIT_CARD: Final[str] = "credit_card"
    DEBIT_CARD: Final[str] = "debit_card"
    PAYPAL: Final[str] = "paypal"
    APPLE_PAY: Final[str] = "apple_pay"
    GOOGLE_PAY: Final[str] = "google_pay"

    ALL: Final[list[str]] = [CREDIT_CARD, DEBIT_CARD, PAYPAL, APPLE_PAY, GOOGLE_PAY]
    CARDS: Final[frozenset[str]] = frozenset({CREDIT_CARD, DEBIT_CARD})


# =============================================================================
# Subscriptions
# =============================================================================


class SubscriptionStatus:
    ACTIVE: Final[str] = "active"
    PAUSED: Final[str] = "paused"
    CANCELLED: Final[str] = "cancelled"
    EXPIRED: Final[str] = "expired"

    ALL: Final[list[str]] = [ACTIVE, PAUSED, CANCELLED, EXPIRED]


# Allowed subscription status transitions: action -> (valid sources, target)
SUBSCRIPTION_TRANSITIONS: Final[dict[str, tuple[frozenset[str], str]]] = {
    "pause": (frozenset({SubscriptionStatus.ACTIVE}), SubscriptionStatus.PAUSED),
    "resume": (frozenset({SubscriptionStatus.PAUSED}), SubscriptionStatus.ACTIVE),
    "cancel": (
        frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED}),
        SubscriptionStatus.CANCELLED,
    ),
}


# =============================================================================
# Notifications
# =============================================================================


class NotificationType:
    """Notification type strings stored on the notification row."""

    ORDER_CREATED: Final[str] = "order_created"
    ORDER_UPDATED: Final[str] = "order_updated"
    ORDER_TRACKING: Final[str] = "order_tracking"
    ORDER_DELIVERED: Final[str] = "order_delivered"
    PAYMENT_COMPLETED: Final[str] = "payment_completed"
    PAYMENT_FAILED: Final[str] = "payment_failed"
    POINTS_REDEEMED: Final[str] = "points_redeemed"
    PROMOTION_APPLIED: Final[str] = "promotion_applied"
    SUBSCRIPTION_CREATED: Final[str] = "subscription_created"
    SUBSCRIPTION_PAUSED: Final[str] = "subscription_paused"
    SUBSCRIPTION_RESUMED: Final[str] = "subscription_resumed"
    SUBSCRIPTION_CANCELLED: Final[str] = "subscription_cancelled"
    PIZZA_LIKED: Final[str] = "pizza_liked"
    PIZZA_SHARED: Final[str] = "pizza_shared"


# =============================================================================
# Validation limits
# =============================================================================


class Limits:
    """Input limits shared by schemas and services."""

    MIN_ADDRESS_LENGTH: Final[int] = 10
    MIN_CONTACT_LENGTH: Final[int] = 10
    MIN_USERNAME_LENGTH: Final[int] = 3
    MIN_PASSWORD_LENGTH: Final[int] = 6
    MIN_REVIEW_COMMENT: Final[int] = 3
    MAX_REVIEW_COMMENT: Final[int] = 500
    MAX_RECOMMENDED_TOPPINGS: Final[int] = 4
    MAX_SIMILAR_CONFIGURATIONS: Final[int] = 3
    MAX_POPULAR_CONFIGURATIONS: Final[int] = 3
    MIN_CUSTOM_PIZZA_NAME: Final[int] = 3
    MAX_CUSTOM_PIZZA_NAME: Final[int] = 50
    MAX_POPULAR_CUSTOM_PIZZAS: Final[int] = 10
