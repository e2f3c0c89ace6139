"""Order endpoints: checkout, student history, owner queue and transitions."""

from typing import Optional

from fastapi import APIRouter, Depends
from services.canteen_service.errors import InvalidStatus, Unauthorized
from services.canteen_service.routers._helpers import (
    get_optional_student_caller,
    get_order_service,
    get_owner_caller,
    get_student_caller,
)
from services.canteen_service.schemas import (
    OrderCreate,
    OrderCreatedResponse,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    StatusUpdateRequest,
)
from services.canteen_service.services.identity import Caller
from services.canteen_service.services.order_lifecycle import OrderLifecycleService
from services.canteen_service.services.state_machine import OWNER_TARGETS

router = APIRouter(prefix="/orders", tags=["orders"])

OWNER_TARGET_VALUES = frozenset(status.value for status in OWNER_TARGETS)


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post("", response_model=OrderCreatedResponse)
async def create_order(
    payload: OrderCreate,
    caller: Optional[Caller] = Depends(get_optional_student_caller),
    service: OrderLifecycleService = Depends(get_order_service),
):
    """Place an order from a cart snapshot.

    A bearer token is optional; when one is sent it must belong to ``userId``.
    """
    order, receipt = await service.create_order(payload, caller)
    return OrderCreatedResponse(order=OrderResponse.from_order(order), receipt=receipt)


# ============================================================================
# QUERIES
# ============================================================================


# Declared before /{user_id} so "all" is not parsed as a user id.
@router.get("/all", response_model=OrderListResponse)
async def list_all_orders(
    caller: Caller = Depends(get_owner_caller),
    service: OrderLifecycleService = Depends(get_order_service),
):
    """Owner queue: every order, newest first."""
    orders = await service.list_all_orders(caller)
    return OrderListResponse(orders=[OrderResponse.from_order(o) for o in orders])


@router.get("/{user_id}", response_model=OrderListResponse)
async def list_user_orders(
    user_id: int,
    service: OrderLifecycleService = Depends(get_order_service),
):
    """A single student's orders, newest first."""
    orders = await service.list_orders_for_user(user_id)
    return OrderListResponse(orders=[OrderResponse.from_order(o) for o in orders])


# ============================================================================
# TRANSITIONS
# ============================================================================


@router.patch("/{order_id}", response_model=OrderEnvelope)
async def update_order_status(
    order_id: str,
    request: StatusUpdateRequest,
    caller: Caller = Depends(get_owner_caller),
    service: OrderLifecycleService = Depends(get_order_service),
):
    """Owner moves an order to ACCEPTED, READY or COMPLETED."""
    if not caller.is_owner:
        raise Unauthorized()
    if request.status not in OWNER_TARGET_VALUES:
        raise InvalidStatus()

    order = await service.update_status(order_id, request.status, caller)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@router.patch("/{order_id}/cancel", response_model=OrderEnvelope)
async def cancel_order(
    order_id: str,
    caller: Caller = Depends(get_student_caller),
    service: OrderLifecycleService = Depends(get_order_service),
):
    """Student cancels their own order while it is still pending."""
    order = await service.cancel_order(order_id, caller)
    return OrderEnvelope(order=OrderResponse.from_order(order))
