"""
Cross-origin policy for the storefront and admin SPA.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pizza_shared.config.settings import settings
from pizza_shared.infrastructure.correlation import REQUEST_ID_HEADER

# Local storefront dev servers
LOCAL_ORIGINS = [f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in (5000, 5173)]


def get_cors_origins() -> list[str]:
    """ALLOWED_ORIGINS (comma-separated) when set, else the local dev servers."""
    configured = [origin.strip() for origin in (settings.allowed_origins or "").split(",")]
    return [origin for origin in configured if origin] or LOCAL_ORIGINS


def configure_cors(app: FastAPI) -> None:
    # Session cookie needs allow_credentials, so origins can't be "*"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=0 if settings.environment == "development" else 600,
    )
