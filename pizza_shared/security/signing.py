"""
Webhook signature verification.

RazorPay signs the raw request body with HMAC-SHA256 using the webhook
secret and sends the hex digest in ``X-Razorpay-Signature``.
"""

import hashlib
import hmac

from pizza_shared.config.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Razorpay-Signature"


def compute_signature(secret: str, body: bytes | str) -> str:
    """Hex HMAC-SHA256 of the body."""
    if isinstance(body, str):
        body = body.encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """
    Constant-time comparison of the received signature with the expected one.

    Returns False when the header is missing.
    """
    if not signature:
        logger.warning("Webhook signature header missing")
        return False

    expected = compute_signature(secret, body)
    if not hmac.compare_digest(expected, signature.strip()):
        logger.warning("Webhook signature mismatch")
        return False
    return True
