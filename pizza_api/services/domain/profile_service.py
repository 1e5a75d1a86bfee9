"""
Profile Service: profile fields, saved addresses and saved payment methods.

Each user has at most one default address and one default payment method.
Setting a new default clears the previous one in the same unit of work.
"""

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from pizza_api.models import PaymentMethod, UserAddress
from pizza_api.repositories import Repository, UnitOfWork
from pizza_shared.config.constants import PaymentMethodType
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from pizza_shared.utils.schemas import AddressCreate, AddressUpdate, PaymentMethodCreate, ProfileUpdate
from .auth_service import UserOutput

logger = get_logger(__name__)


class AddressOutput(BaseModel):
    id: int
    user_id: int
    name: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str
    is_default: bool
    phone: str | None = None

    class Config:
        from_attributes = True


class PaymentMethodOutput(BaseModel):
    id: int
    user_id: int
    type: str
    last_four: str | None = None
    expiry_month: int | None = None
    expiry_year: int | None = None
    cardholder_name: str | None = None
    is_default: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileService:

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    # =========================================================================
    # Profile
    # =========================================================================

    def get_profile(self, user_id: int) -> UserOutput:
        user = self._uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return UserOutput.model_validate(user)

    def update_profile(self, user_id: int, data: ProfileUpdate) -> UserOutput:
        changes = data.model_dump(exclude_unset=True)
        with self._uow:
            user = self._uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            if changes.get("email"):
                changes["email"] = changes["email"].lower()
                other = self._uow.users.first_by(email=changes["email"])
                if other is not None and other.id != user_id:
                    raise DuplicateEntityError("User", "email")
                if changes["email"] != user.email:
                    changes["email_verified"] = False
            else:
                changes.pop("email", None)

            self._uow.users.update(user, **changes)

        logger.info("Profile updated", user_id=user_id, fields=sorted(changes))
        return UserOutput.model_validate(user)

    # =========================================================================
    # Defaults
    # =========================================================================

    @staticmethod
    def _clear_default(repo: Repository, user_id: int, keep_id: int | None = None) -> None:
        for row in repo.find_by(user_id=user_id, is_default=True):
            if row.id != keep_id:
                repo.update(row, is_default=False)

    # =========================================================================
    # Addresses
    # =========================================================================

    def list_addresses(self, user_id: int) -> list[AddressOutput]:
        rows = self._uow.addresses.find_by(user_id=user_id, order_by="id")
        return [AddressOutput.model_validate(a) for a in rows]

    def _get_address(self, user_id: int, address_id: int) -> UserAddress:
        address = self._uow.addresses.get(address_id)
        if address is None or address.user_id != user_id:
            raise NotFoundError("Address", address_id, user_id=user_id)
        return address

    def add_address(self, user_id: int, data: AddressCreate) -> AddressOutput:
        values = data.model_dump()
        with self._uow:
            # A user's first address becomes the default
            if not self._uow.addresses.find_by(user_id=user_id):
                values["is_default"] = True
            if values["is_default"]:
                self._clear_default(self._uow.addresses, user_id)
            address = self._uow.addresses.create(user_id=user_id, **values)

        logger.info("Address added", user_id=user_id, address_id=address.id)
        return AddressOutput.model_validate(address)

    def update_address(self, user_id: int, address_id: int, data: AddressUpdate) -> AddressOutput:
        changes = data.model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k in ("address_line2", "phone")}
        with self._uow:
            address = self._get_address(user_id, address_id)
            if changes.get("is_default"):
                self._clear_default(self._uow.addresses, user_id, keep_id=address_id)
            self._uow.addresses.update(address, **changes)
        return AddressOutput.model_validate(address)

    def set_default_address(self, user_id: int, address_id: int) -> AddressOutput:
        with self._uow:
            address = self._get_address(user_id, address_id)
            self._clear_default(self._uow.addresses, user_id, keep_id=address_id)
            self._uow.addresses.update(address, is_default=True)
        return AddressOutput.model_validate(address)

    def delete_address(self, user_id: int, address_id: int) -> None:
        with self._uow:
            address = self._get_address(user_id, address_id)
            for subscription in self._uow.subscriptions.find_by(default_address_id=address_id):
                self._uow.subscriptions.update(subscription, default_address_id=None)
            self._uow.addresses.delete(address)
        logger.info("Address deleted", user_id=user_id, address_id=address_id)

    # =========================================================================
    # Payment methods
    # =========================================================================

    def list_payment_methods(self, user_id: int) -> list[PaymentMethodOutput]:
        rows = self._uow.payment_methods.find_by(user_id=user_id, order_by="id")
        return [PaymentMethodOutput.model_validate(m) for m in rows]

    def _get_payment_method(self, user_id: int, method_id: int) -> PaymentMethod:
        method = self._uow.payment_methods.get(method_id)
        if method is None or method.user_id != user_id:
            raise NotFoundError("Payment method", method_id, user_id=user_id)
        return method

    def add_payment_method(self, user_id: int, data: PaymentMethodCreate) -> PaymentMethodOutput:
        values: dict[str, Any] = {
            "type": data.type,
            "expiry_month": data.expiry_month,
            "expiry_year": data.expiry_year,
            "cardholder_name": data.cardholder_name,
            "is_default": data.is_default,
            "gateway_token": f"tok_{secrets.token_hex(8)}",
        }
        if data.type in PaymentMethodType.CARDS:
            if not data.card_number:
                raise ValidationError("Card number is required for card payment methods")
            values["last_four"] = data.card_number[-4:]

        with self._uow:
            if not self._uow.payment_methods.find_by(user_id=user_id):
                values["is_default"] = True
            if values["is_default"]:
                self._clear_default(self._uow.payment_methods, user_id)
            method = self._uow.payment_methods.create(user_id=user_id, **values)

        logger.info("Payment method added", user_id=user_id, payment_method_id=method.id, type=method.type)
        return PaymentMethodOutput.model_validate(method)

    def set_default_payment_method(self, user_id: int, method_id: int) -> PaymentMethodOutput:
        with self._uow:
            method = self._get_payment_method(user_id, method_id)
            self._clear_default(self._uow.payment_methods, user_id, keep_id=method_id)
            self._uow.payment_methods.update(method, is_default=True)
        return PaymentMethodOutput.model_validate(method)

    def delete_payment_method(self, user_id: int, method_id: int) -> None:
        with self._uow:
            method = self._get_payment_method(user_id, method_id)
            # Past orders and subscriptions keep their rows, minus the reference
            for order in self._uow.orders.find_by(payment_method_id=method_id):
                self._uow.orders.update(order, payment_method_id=None)
            for subscription in self._uow.subscriptions.find_by(payment_method_id=method_id):
                self._uow.subscriptions.update(subscription, payment_method_id=None)
            self._uow.payment_methods.delete(method)
        logger.info("Payment method deleted", user_id=user_id, payment_method_id=method_id)
