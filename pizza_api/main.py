"""
Pizza ordering API.

Entry point for the FastAPI server: ``uvicorn pizza_api.main:app``.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text

from pizza_api.core import configure_cors, lifespan, register_exception_handlers, register_middlewares
from pizza_api.routers.admin import router as admin_router
from pizza_api.routers.auth import router as auth_router
from pizza_api.routers.catalog import router as catalog_router
from pizza_api.routers.custom_pizzas import router as custom_pizzas_router
from pizza_api.routers.notifications import router as notifications_router
from pizza_api.routers.orders import router as orders_router
from pizza_api.routers.payments import router as payments_router
from pizza_api.routers.profile import router as profile_router
from pizza_api.routers.promotions import router as promotions_router
from pizza_api.routers.recommendations import router as recommendations_router
from pizza_api.routers.subscriptions import router as subscriptions_router
from pizza_shared.config.settings import settings
from pizza_shared.infrastructure.db import SessionLocal
from pizza_shared.security.rate_limit import limiter


app = FastAPI(
    title="Pizza Shop API",
    description="Custom pizza ordering, payments, subscriptions and notifications",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter

register_exception_handlers(app)
register_middlewares(app)
configure_cors(app)

app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(orders_router)
app.include_router(promotions_router)
app.include_router(payments_router)
app.include_router(subscriptions_router)
app.include_router(notifications_router)
app.include_router(recommendations_router)
app.include_router(custom_pizzas_router)
app.include_router(profile_router)
app.include_router(admin_router)


# -- health --


@app.get("/api/health")
def health_check():
    """Liveness probe."""
    return {
        "status": "healthy",
        "service": "pizza-api",
        "environment": settings.environment,
    }


@app.get("/api/health/detailed")
def detailed_health_check():
    """Database connectivity and open notification sockets."""
    checks = {"service": "pizza-api", "environment": settings.environment, "dependencies": {}}
    healthy = True

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        healthy = False

    connections = getattr(app.state, "connections", None)
    checks["websocket_connections"] = connections.connection_count() if connections else 0
    checks["status"] = "healthy" if healthy else "degraded"

    if not healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
