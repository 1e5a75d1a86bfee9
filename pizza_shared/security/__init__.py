"""
Security module: password hashing, session tokens, rate limiting, webhook signatures.
"""

from pizza_shared.security.password import hash_password, verify_password, needs_rehash
from pizza_shared.security.auth import (
    sign_session_token,
    verify_session_token,
    session_claims,
    optional_session_claims,
    set_session_cookie,
    clear_session_cookie,
)
from pizza_shared.security.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
    "sign_session_token",
    "verify_session_token",
    "session_claims",
    "optional_session_claims",
    "set_session_cookie",
    "clear_session_cookie",
    "limiter",
    "rate_limit_exceeded_handler",
]
