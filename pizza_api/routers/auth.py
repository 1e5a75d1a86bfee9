"""
Authentication router.
Handles registration, login/logout, the current user and password reset.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from pizza_api.models import User
from pizza_api.repositories import UnitOfWork
from pizza_api.routers._common import get_current_user, get_uow
from pizza_api.services.domain import AuthService
from pizza_api.services.domain.auth_service import ForgotPasswordOutput, UserOutput
from pizza_shared.security.auth import (
    clear_session_cookie,
    set_session_cookie,
    sign_session_token,
)
from pizza_shared.security.rate_limit import (
    LOGIN_LIMIT,
    PASSWORD_RESET_LIMIT,
    REGISTER_LIMIT,
    limiter,
)
from pizza_shared.utils.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
)


router = APIRouter(prefix="/api", tags=["auth"])


def _start_session(response: Response, user: User) -> None:
    token = sign_session_token(user.id, user.is_admin, user.session_version)
    set_session_cookie(response, token)


@router.post("/register", response_model=UserOutput, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> UserOutput:
    """Create an account and log it in."""
    user = AuthService(uow).register(body)
    _start_session(response, user)
    return UserOutput.model_validate(user)


@router.post("/login", response_model=UserOutput)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> UserOutput:
    user = AuthService(uow).authenticate(body.username, body.password)
    _start_session(response, user)
    return UserOutput.model_validate(user)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    """Clear the cookie and revoke every token issued to the user."""
    AuthService(uow).logout(user.id)
    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=UserOutput)
def current_user(user: User = Depends(get_current_user)) -> UserOutput:
    return UserOutput.model_validate(user)


@router.post("/forgot-password", response_model=ForgotPasswordOutput)
@limiter.limit(PASSWORD_RESET_LIMIT)
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> ForgotPasswordOutput:
    return AuthService(uow).forgot_password(body.email)


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(PASSWORD_RESET_LIMIT)
def reset_password(
    request: Request,
    response: Response,
    body: ResetPasswordRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    AuthService(uow).reset_password(body.token, body.password)
    clear_session_cookie(response)
    return MessageResponse(message="Password has been reset")
