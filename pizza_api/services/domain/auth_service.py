"""
Account Service: registration, credential checks, logout, password reset.

Session tokens themselves live in pizza_shared.security.auth; this service
only decides who the user is and bumps ``session_version`` to revoke.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from pydantic import BaseModel

from pizza_api.models import User, as_utc, utcnow
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.logging import auth_logger as logger, mask_email
from pizza_shared.config.settings import settings
from pizza_shared.security.password import hash_password, needs_rehash, verify_password
from pizza_shared.utils.exceptions import (
    AuthenticationError,
    DuplicateEntityError,
    NotFoundError,
    ValidationError,
)
from pizza_shared.utils.schemas import RegisterRequest

INVALID_CREDENTIALS = "Invalid username or password"
INVALID_RESET_TOKEN = "Invalid or expired reset token"


class UserOutput(BaseModel):
    """The user as clients may see it: no password, no tokens."""

    id: int
    username: str
    email: str
    is_admin: bool
    email_verified: bool
    phone: str | None = None
    profile_picture: str | None = None
    loyalty_points: int
    membership_tier: str
    created_at: datetime

    class Config:
        from_attributes = True


class ForgotPasswordOutput(BaseModel):
    message: str
    # Returned only because the demo shop has no mailer
    reset_token: str | None = None


class AuthService:

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    def get_user(self, user_id: int) -> User:
        user = self._uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def register(self, data: RegisterRequest) -> User:
        email = data.email.lower()
        if self._uow.users.first_by(username=data.username) is not None:
            raise DuplicateEntityError("User", "username", username=data.username)
        if self._uow.users.first_by(email=email) is not None:
            raise DuplicateEntityError("User", "email", email=mask_email(email))

        with self._uow:
            user = self._uow.users.create(
                username=data.username,
                email=email,
                password=hash_password(data.password),
                phone=data.phone,
            )

        logger.info("User registered", user_id=user.id, email=mask_email(email))
        return user

    def authenticate(self, username_or_email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: unknown user or wrong password (same message for both).
        """
        identifier = username_or_email.strip()
        user = self._uow.users.first_by(username=identifier)
        if user is None and "@" in identifier:
            user = self._uow.users.first_by(email=identifier.lower())

        if user is None:
            logger.warning("LOGIN_FAILED: User not found", identifier=mask_email(identifier))
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not verify_password(password, user.password):
            logger.warning("LOGIN_FAILED: Invalid password", user_id=user.id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        if needs_rehash(user.password):
            with self._uow:
                self._uow.users.update(user, password=hash_password(password))
            logger.info("Legacy password hash upgraded", user_id=user.id)

        logger.info("LOGIN_SUCCESS", user_id=user.id)
        return user

    def logout(self, user_id: int) -> None:
        """Revoke every session the user holds."""
        with self._uow:
            if not self._uow.users.increment(user_id, "session_version", 1):
                raise NotFoundError("User", user_id)
        logger.info("LOGOUT: sessions revoked", user_id=user_id)

    def forgot_password(self, email: str) -> ForgotPasswordOutput:
        """Always succeeds so callers cannot probe which e-mails exist."""
        message = "If an account with that email exists, a reset link has been sent"
        user = self._uow.users.first_by(email=email.lower())
        if user is None:
            logger.info("Password reset requested for unknown email", email=mask_email(email))
            return ForgotPasswordOutput(message=message)

        token = secrets.token_hex(32)
        with self._uow:
            self._uow.users.update(
                user,
                reset_token=token,
                reset_token_expiry=utcnow() + timedelta(minutes=settings.reset_token_ttl_minutes),
            )

        logger.info("Password reset token issued", user_id=user.id)
        return ForgotPasswordOutput(message=message, reset_token=token)

    def reset_password(self, token: str, new_password: str, now: datetime | None = None) -> None:
        now = as_utc(now) if now else utcnow()
        user = self._uow.users.first_by(reset_token=token)
        if user is None or user.reset_token_expiry is None or as_utc(user.reset_token_expiry) < now:
            raise ValidationError(INVALID_RESET_TOKEN)

        with self._uow:
            self._uow.users.update(
                user,
                password=hash_password(new_password),
                reset_token=None,
                reset_token_expiry=None,
                session_version=user.session_version + 1,
            )

        logger.info("Password reset completed", user_id=user.id)
