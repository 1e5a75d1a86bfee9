"""
Session tokens.

A session is a signed JWT carried in an HttpOnly cookie (browsers) or an
``Authorization: Bearer`` header (API clients). Tokens embed the user's
session version; bumping the version on the user row revokes every token
issued before it.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Request, Response

from pizza_shared.config.settings import (
    SESSION_AUDIENCE,
    SESSION_ISSUER,
    SESSION_SECRET,
    settings,
)
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import AuthenticationError

logger = get_logger(__name__)

ALGORITHM = "HS256"


def sign_session_token(
    user_id: int,
    is_admin: bool,
    session_version: int,
    ttl_seconds: int | None = None,
) -> str:
    """
    Sign a session token for a user.

    Claims:
        sub: user id (string)
        is_admin: admin flag at login time
        sv: session version, compared against the user row on every request
        jti: unique token id
    """
    if ttl_seconds is None:
        ttl_seconds = settings.session_ttl_hours * 60 * 60

    now = int(time.time())
    data = {
        "sub": str(user_id),
        "is_admin": bool(is_admin),
        "sv": session_version,
        "iss": SESSION_ISSUER,
        "aud": SESSION_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, SESSION_SECRET, algorithm=ALGORITHM)


def verify_session_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            SESSION_SECRET,
            algorithms=[ALGORITHM],
            audience=SESSION_AUDIENCE,
            issuer=SESSION_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session has expired")
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message to the client
        logger.warning("Session token validation failed", error=str(e))
        raise AuthenticationError("Invalid session")

    try:
        payload["user_id"] = int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise AuthenticationError("Invalid session")

    if not isinstance(payload.get("sv"), int):
        raise AuthenticationError("Invalid session")

    return payload


def extract_token(request: Request) -> str | None:
    """Session token from the cookie, falling back to a Bearer header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def session_claims(request: Request) -> dict[str, Any]:
    """
    FastAPI dependency: decoded claims of the current session.

    Raises 401 if there is no session or it does not verify.
    """
    token = extract_token(request)
    if not token:
        raise AuthenticationError()
    return verify_session_token(token)


def optional_session_claims(request: Request) -> dict[str, Any] | None:
    """Like session_claims but returns None for anonymous requests."""
    token = extract_token(request)
    if not token:
        return None
    try:
        return verify_session_token(token)
    except AuthenticationError:
        return None


def set_session_cookie(response: Response, token: str) -> None:
    """
    Set the session token as an HttpOnly cookie.

    - httponly: not readable from JavaScript
    - secure: only sent over HTTPS (configurable for dev)
    - samesite: CSRF protection
    """
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.session_ttl_hours * 60 * 60,
        path="/",
        domain=settings.cookie_domain or None,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        domain=settings.cookie_domain or None,
    )
