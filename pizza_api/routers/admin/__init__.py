"""
Admin API router - combines all admin sub-routers.

- orders: every order, lifecycle status, tracking, delivery
- inventory: catalog creation, stock levels, low-stock report
- promotions: promotion codes
- plans: subscription plans and all user subscriptions

All routes are prefixed with /api/admin and require an admin session
(401 without a session, 403 for non-admins).
"""

from fastapi import APIRouter, Depends

from pizza_api.routers._common import require_admin
from .orders import router as orders_router
from .inventory import router as inventory_router
from .promotions import router as promotions_router
from .plans import router as plans_router


router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])

router.include_router(orders_router)
router.include_router(inventory_router)
router.include_router(promotions_router)
router.include_router(plans_router)

__all__ = ["router"]
