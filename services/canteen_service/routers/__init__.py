"""Canteen service routers package."""

from services.canteen_service.routers.auth import router as auth_router
from services.canteen_service.routers.orders import router as orders_router

__all__ = ["auth_router", "orders_router"]
