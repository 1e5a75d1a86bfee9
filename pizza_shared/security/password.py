"""
Password hashing utilities using bcrypt.

New passwords are always hashed with bcrypt. Accounts imported from the
previous storefront carry ``<hex scrypt digest>.<salt>`` credentials; those
still verify and are flagged for rehash so the login path upgrades them.
"""

import hashlib
import hmac

import bcrypt

from pizza_shared.config.logging import get_logger

logger = get_logger(__name__)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# Parameters used by the legacy scrypt credentials (Node's crypto.scrypt defaults)
LEGACY_SCRYPT_N = 16384
LEGACY_SCRYPT_R = 8
LEGACY_SCRYPT_P = 1
LEGACY_SCRYPT_KEYLEN = 64


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Example:
        hashed = hash_password("mypassword123")
        # Returns something like: $2b$12$...
    """
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _is_legacy_scrypt(hashed_password: str) -> bool:
    digest, sep, salt = hashed_password.partition(".")
    return bool(sep) and bool(salt) and len(digest) == LEGACY_SCRYPT_KEYLEN * 2


def _verify_legacy_scrypt(plain_password: str, hashed_password: str) -> bool:
    digest_hex, _, salt = hashed_password.partition(".")
    try:
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    derived = hashlib.scrypt(
        plain_password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=LEGACY_SCRYPT_N,
        r=LEGACY_SCRYPT_R,
        p=LEGACY_SCRYPT_P,
        dklen=LEGACY_SCRYPT_KEYLEN,
    )
    return hmac.compare_digest(derived, expected)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its stored hash.

    Returns:
        True if password matches, False otherwise (including unknown formats).
    """
    if hashed_password.startswith(BCRYPT_PREFIXES):
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))

    if _is_legacy_scrypt(hashed_password):
        return _verify_legacy_scrypt(plain_password, hashed_password)

    logger.warning("SECURITY: Unrecognized password hash format rejected")
    return False


def needs_rehash(hashed_password: str) -> bool:
    """True if the stored hash is not bcrypt and should be upgraded after login."""
    return not hashed_password.startswith(BCRYPT_PREFIXES)
