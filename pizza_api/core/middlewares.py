"""
HTTP middlewares applied to every response.
"""

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from pizza_shared.config.settings import settings
from pizza_shared.infrastructure.correlation import CorrelationIdMiddleware

BASE_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "same-origin",
}

# Sent only behind TLS
HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in BASE_SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.environment == "production":
            response.headers[HSTS_HEADER[0]] = HSTS_HEADER[1]
        return response


def register_middlewares(app: FastAPI) -> None:
    # Last added runs first, so the request id exists before anything logs
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
