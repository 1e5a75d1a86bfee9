"""
Shared Pydantic request schemas used across the API.

Output schemas live next to the service that builds them.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from pizza_shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

OrderStatusValue = Literal[
    "pending", "received", "preparing", "cooking", "quality_check",
    "packed", "out_for_delivery", "delivered", "cancelled",
]
PaymentStatusValue = Literal["pending", "processing", "completed", "failed", "refunded"]
DiscountTypeValue = Literal["percentage", "fixed"]
CatalogKindValue = Literal["base", "sauce", "cheese", "topping"]
MembershipTierValue = Literal["bronze", "silver", "gold", "platinum"]
PaymentMethodTypeValue = Literal["credit_card", "debit_card", "paypal", "apple_pay", "google_pay"]


# =============================================================================
# Authentication
# =============================================================================


class RegisterRequest(BaseModel):
    username: str = Field(min_length=Limits.MIN_USERNAME_LENGTH, max_length=50)
    email: EmailStr
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH, max_length=128)
    phone: str | None = Field(default=None, max_length=30)


class LoginRequest(BaseModel):
    """Login accepts either the username or the e-mail in ``username``."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH, max_length=128)


# =============================================================================
# Pizza configuration and orders
# =============================================================================


class PizzaConfiguration(BaseModel):
    """
    A pizza as chosen by the customer: one base, at most one sauce and one
    cheese, and any number of toppings. Every id references a catalog row and
    is checked against the catalog before the order is written.
    """

    base_id: int = Field(gt=0)
    sauce_id: int | None = Field(default=None, gt=0)
    cheese_id: int | None = Field(default=None, gt=0)
    topping_ids: list[int] = Field(default_factory=list, max_length=20)

    @field_validator("topping_ids")
    @classmethod
    def _positive_ids(cls, value: list[int]) -> list[int]:
        if any(t <= 0 for t in value):
            raise ValueError("topping ids must be positive")
        return value

    def component_ids(self) -> list[tuple[str, int]]:
        """(kind, id) for every referenced component, toppings repeated as given."""
        refs: list[tuple[str, int]] = [("base", self.base_id)]
        if self.sauce_id is not None:
            refs.append(("sauce", self.sauce_id))
        if self.cheese_id is not None:
            refs.append(("cheese", self.cheese_id))
        refs.extend(("topping", t) for t in self.topping_ids)
        return refs


class OrderItemInput(BaseModel):
    pizza: PizzaConfiguration
    price: float = Field(gt=0)
    quantity: int = Field(default=1, ge=1, le=50)
    special_instructions: str | None = Field(default=None, max_length=300)


class OrderCreateRequest(BaseModel):
    total_amount: float = Field(gt=0)
    delivery_address: str = Field(min_length=Limits.MIN_ADDRESS_LENGTH, max_length=500)
    contact_number: str = Field(min_length=Limits.MIN_CONTACT_LENGTH, max_length=30)
    delivery_notes: str | None = Field(default=None, max_length=500)
    payment_method_id: int | None = None
    items: list[OrderItemInput] = Field(min_length=1)

    @field_validator("delivery_address", "contact_number", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        # length limits apply to the trimmed text
        return value.strip() if isinstance(value, str) else value


class OrderStatusUpdate(BaseModel):
    status: OrderStatusValue


class OrderTrackingUpdate(BaseModel):
    tracking_url: str | None = Field(default=None, max_length=500)
    estimated_delivery_time: datetime | None = None
    delivery_person_id: int | None = None
    delivery_notes: str | None = Field(default=None, max_length=500)


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=Limits.MIN_REVIEW_COMMENT, max_length=Limits.MAX_REVIEW_COMMENT)


# =============================================================================
# Promotions, loyalty and payment
# =============================================================================


class PromotionValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    order_amount: float = Field(gt=0)


class ApplyPromotionRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)


class LoyaltyRedeemRequest(BaseModel):
    points: int = Field(gt=0)
    order_id: int


class ProcessPaymentRequest(BaseModel):
    order_id: int
    amount: float = Field(ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    payment_method_id: int | None = None


class PaymentStatusRequest(BaseModel):
    """Client confirmation after the (mocked) gateway checkout."""

    order_id: int
    payment_id: str = Field(min_length=1, max_length=100)


class WebhookPayload(BaseModel):
    order_id: int
    payment_id: str | None = None


class WebhookEvent(BaseModel):
    event: str
    payload: WebhookPayload


# =============================================================================
# Subscriptions
# =============================================================================


class SubscribeRequest(BaseModel):
    plan_id: int
    payment_method_id: int | None = None
    default_address_id: int | None = None
    default_pizza_config: PizzaConfiguration | None = None


class PlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    price: float = Field(gt=0)
    interval_days: int = Field(ge=1, le=365)
    pizza_allowance: int = Field(default=1, ge=1)
    additional_perks: list[str] = Field(default_factory=list)
    is_active: bool = True


class PlanUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    price: float | None = Field(default=None, gt=0)
    interval_days: int | None = Field(default=None, ge=1, le=365)
    pizza_allowance: int | None = Field(default=None, ge=1)
    additional_perks: list[str] | None = None


# =============================================================================
# Custom pizzas
# =============================================================================


class CustomPizzaCreate(BaseModel):
    name: str = Field(min_length=Limits.MIN_CUSTOM_PIZZA_NAME, max_length=Limits.MAX_CUSTOM_PIZZA_NAME)
    description: str | None = Field(default=None, max_length=500)
    image: str | None = Field(default=None, max_length=500)
    pizza_config: PizzaConfiguration
    is_public: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class CustomPizzaUpdate(BaseModel):
    """Only the fields present in the body are changed."""

    name: str | None = Field(
        default=None, min_length=Limits.MIN_CUSTOM_PIZZA_NAME, max_length=Limits.MAX_CUSTOM_PIZZA_NAME
    )
    description: str | None = Field(default=None, max_length=500)
    image: str | None = Field(default=None, max_length=500)
    pizza_config: PizzaConfiguration | None = None
    is_public: bool | None = None


# =============================================================================
# Admin catalog and promotions
# =============================================================================


class CatalogItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    price: float = Field(ge=0)
    image: str | None = Field(default=None, max_length=500)
    stock: int | None = Field(default=None, ge=0)
    threshold: int | None = Field(default=None, ge=0)
    is_veg: bool | None = None


class StockUpdate(BaseModel):
    stock: int = Field(ge=0)


class PromotionCreate(BaseModel):
    code: str = Field(min_length=2, max_length=50)
    description: str = Field(default="", max_length=500)
    discount_type: DiscountTypeValue
    discount_value: float = Field(gt=0)
    min_order_amount: float = Field(default=0, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    start_date: datetime
    end_date: datetime
    is_active: bool = True


class PromotionUpdate(BaseModel):
    description: str | None = Field(default=None, max_length=500)
    discount_type: DiscountTypeValue | None = None
    discount_value: float | None = Field(default=None, gt=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool | None = None


# =============================================================================
# Profile
# =============================================================================


class ProfileUpdate(BaseModel):
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
    profile_picture: str | None = Field(default=None, max_length=2000)


class AddressCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    address_line1: str = Field(min_length=3, max_length=300)
    address_line2: str | None = Field(default=None, max_length=300)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=3, max_length=20)
    country: str = Field(default="USA", max_length=60)
    phone: str | None = Field(default=None, max_length=30)
    is_default: bool = False


class AddressUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    address_line1: str | None = Field(default=None, min_length=3, max_length=300)
    address_line2: str | None = Field(default=None, max_length=300)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    state: str | None = Field(default=None, min_length=1, max_length=100)
    postal_code: str | None = Field(default=None, min_length=3, max_length=20)
    country: str | None = Field(default=None, max_length=60)
    phone: str | None = Field(default=None, max_length=30)
    is_default: bool | None = None


class PaymentMethodCreate(BaseModel):
    """
    Card details arrive in full and leave as the last four digits.
    ``cvv`` is accepted so clients can send a complete card form; it is
    never stored.
    """

    type: PaymentMethodTypeValue
    card_number: str | None = Field(default=None, min_length=12, max_length=23)
    expiry_month: int | None = Field(default=None, ge=1, le=12)
    expiry_year: int | None = Field(default=None, ge=2000, le=2100)
    cardholder_name: str | None = Field(default=None, max_length=100)
    cvv: str | None = Field(default=None, min_length=3, max_length=4, exclude=True)
    is_default: bool = False

    @field_validator("card_number")
    @classmethod
    def _digits_only(cls, value: str | None) -> str | None:
        if value is None:
            return value
        digits = value.replace(" ", "").replace("-", "")
        if not digits.isdigit():
            raise ValueError("card number must contain digits only")
        return digits


# =============================================================================
# Generic
# =============================================================================


class MessageResponse(BaseModel):
    message: str
    data: dict[str, Any] | None = None
