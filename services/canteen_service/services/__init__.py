"""Business logic for the canteen service."""

from services.canteen_service.services.identity import Caller, authenticate
from services.canteen_service.services.order_lifecycle import OrderLifecycleService
from services.canteen_service.services.order_store import OrderStore

__all__ = ["Caller", "OrderLifecycleService", "OrderStore", "authenticate"]
