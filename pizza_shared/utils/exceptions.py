"""
Domain errors raised by services and routers.

Each one is an HTTPException that logs itself on construction and is rendered
by the API exception handlers as a JSON ``{"message": detail}`` body.

Usage:
    from pizza_shared.utils.exceptions import NotFoundError, ForbiddenError

    raise NotFoundError("Order", order_id)
    raise ForbiddenError("view this order")
"""

from typing import Any

from fastapi import HTTPException, status

from pizza_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """Logs at `log_level` with the keyword context, then behaves like HTTPException."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        getattr(logger, log_level, logger.warning)(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# -- 401 / 403 --


class AuthenticationError(AppException):
    """No valid session (401)."""

    def __init__(self, detail: str = "Not authenticated", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="info",
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Caller is signed in but may not touch this resource.

    Usage:
        raise ForbiddenError("view this order", user_id=user_id)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not authorized to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class AdminRequiredError(ForbiddenError):
    """Route is reserved for administrators."""

    def __init__(self, **log_context: Any):
        super().__init__("access admin resources", **log_context)


# -- 404 --


class NotFoundError(AppException):
    """Lookup by id came back empty, or the row belongs to someone else."""

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class InvalidPromotionError(AppException):
    """Promotion code unknown, inactive, expired, exhausted or below its minimum."""

    def __init__(self, code: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid or expired promotion code",
            log_level="info",
            code=code,
            **log_context,
        )


# -- 400 --


class ValidationError(AppException):
    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class DuplicateEntityError(ValidationError):
    """Unique field (username, email, promotion code) already taken."""

    def __init__(self, entity: str, field: str | None = None, **log_context: Any):
        if field:
            detail = f"{entity} with this {field} already exists"
        else:
            detail = f"{entity} already exists"

        super().__init__(detail, entity=entity, field=field, **log_context)


class InsufficientPointsError(ValidationError):
    """Redemption asks for more points than the balance holds."""

    def __init__(self, requested: int, available: int, **log_context: Any):
        super().__init__(
            "Insufficient loyalty points",
            requested=requested,
            available=available,
            **log_context,
        )


class PaymentAmountError(ValidationError):
    """Paid amount does not match what the order owes."""

    def __init__(self, amount: float, expected: float, **log_context: Any):
        super().__init__(
            f"Payment amount {amount:.2f} does not match order total {expected:.2f}",
            amount=amount,
            expected=expected,
            **log_context,
        )


# -- 409 --


class ConflictError(AppException):
    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidStateError(ConflictError):
    """Entity is in a state that does not allow the operation."""

    def __init__(self, entity: str, current_state: str, **log_context: Any):
        super().__init__(
            f"{entity} is '{current_state}' and cannot be modified",
            entity=entity,
            current_state=current_state,
            **log_context,
        )


class InvalidTransitionError(ConflictError):
    """Status machine has no edge for the requested move."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        super().__init__(
            f"Cannot move {entity} from '{from_status}' to '{to_status}'",
            entity=entity,
            from_status=from_status,
            to_status=to_status,
            **log_context,
        )


class AlreadyPaidError(ConflictError):
    """Order has already been paid."""

    def __init__(self, order_id: int, **log_context: Any):
        super().__init__(f"Order {order_id} is already paid", order_id=order_id, **log_context)


class InsufficientStockError(ConflictError):
    """A catalog item does not have enough stock for the requested quantity."""

    def __init__(self, kind: str, item_id: int, name: str, requested: int, **log_context: Any):
        super().__init__(
            f"Not enough stock for {kind} '{name}'",
            kind=kind,
            item_id=item_id,
            requested=requested,
            **log_context,
        )


class PromotionExhaustedError(ConflictError):
    """Promotion hit its usage cap between validation and application."""

    def __init__(self, code: str, **log_context: Any):
        super().__init__(
            f"Promotion {code} has reached its usage limit",
            code=code,
            **log_context,
        )

