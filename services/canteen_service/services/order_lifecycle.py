"""Order lifecycle: creation, status transitions and order queries.

The service is built per request around an ``OrderStore`` bound to one
``AsyncSession``. Validation and authorization always happen before any
write; storage errors are rolled back, logged and re-raised as
``StorageFailure``.
"""

import json
import math
from contextlib import asynccontextmanager
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import AsyncIterator, Optional

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.canteen_service.errors import (
    CanteenError,
    IllegalTransition,
    InvalidOrderData,
    OrderNotFound,
    StorageFailure,
    Unauthorized,
)
from services.canteen_service.models import (
    CASH_PAYMENT_LABEL,
    PAID_PAYMENT_LABEL,
    Order,
    OrderStatus,
    PaymentMethod,
    ReceiptPaymentStatus,
)
from services.canteen_service.schemas import (
    OrderCreate,
    OrderLineItem,
    OrderResponse,
    ReceiptResponse,
)
from services.canteen_service.services.identity import Caller
from services.canteen_service.services.order_store import OrderStore
from services.canteen_service.services.state_machine import (
    OWNER_TARGETS,
    TERMINAL_STATUSES,
    Actor,
    can_transition,
    next_statuses,
    parse_status,
    transition_to,
)
from sqlalchemy.exc import SQLAlchemyError

logger = get_logger(__name__)

CENT = Decimal("0.01")
# Largest amount orders.total (NUMERIC(10, 2)) can hold.
MAX_TOTAL = Decimal("99999999.99")
PLACEHOLDER_PAYER = {"studentName": "Student", "studentEmail": ""}


def default_payment_status(method: PaymentMethod) -> str:
    """Cash is settled at the counter; every other method is simulated as paid."""
    return CASH_PAYMENT_LABEL if method is PaymentMethod.CASH else PAID_PAYMENT_LABEL


def expected_total(items: list[OrderLineItem], tax_rate: float) -> Decimal:
    """Subtotal of the item snapshot plus tax, rounded to cents."""
    subtotal = sum(
        (Decimal(str(item.effective_unit_price)) * item.quantity for item in items),
        Decimal("0"),
    )
    total = subtotal * (Decimal("1") + Decimal(str(tax_rate)))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def build_receipt(order: Order) -> ReceiptResponse:
    payer = order.payer
    record = OrderResponse.from_order(order)
    return ReceiptResponse(
        student_name=payer.get("studentName", PLACEHOLDER_PAYER["studentName"]),
        student_email=payer.get("studentEmail", PLACEHOLDER_PAYER["studentEmail"]),
        order_id=record.id,
        items=record.items,
        total_amount=record.total,
        payment_method=record.payment_method,
        payment_status=(
            ReceiptPaymentStatus.SUCCESS
            if record.payment_status == PAID_PAYMENT_LABEL
            else ReceiptPaymentStatus.PENDING
        ),
        payment_time=record.payment_time,
        valid_till_time=record.valid_till_time,
        order_status=record.status,
    )


class OrderLifecycleService:
    def __init__(self, store: OrderStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    @asynccontextmanager
    async def _storage(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except CanteenError:
            raise
        except SQLAlchemyError:
            logger.exception("Storage failure while trying to %s", action)
            await self.store.rollback()
            raise StorageFailure()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _validate(self, payload: OrderCreate) -> None:
        if payload.user_id is None:
            raise InvalidOrderData("Missing fields: userId is required")
        if not payload.items:
            raise InvalidOrderData("Missing fields: items must not be empty")
        if payload.total is None or payload.total <= 0:
            raise InvalidOrderData("Missing fields: total must be a positive amount")
        if not math.isfinite(payload.total) or payload.total > MAX_TOTAL:
            raise InvalidOrderData(f"Total must be a finite amount up to {MAX_TOTAL}")

        policy = self.settings.TOTAL_POLICY
        if policy == "trust":
            return

        try:
            expected = expected_total(payload.items, self.settings.TAX_RATE)
            submitted = Decimal(str(payload.total)).quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise InvalidOrderData("Item prices are out of range") from None
        if abs(expected - submitted) <= CENT:
            return

        if policy == "reject":
            raise InvalidOrderData(
                f"Total {submitted} does not match items plus tax ({expected})"
            )
        logger.warning(
            "Order total %s for user %s differs from recomputed %s; accepting as given",
            submitted,
            payload.user_id,
            expected,
        )

    async def _payer_snapshot(self, user_id: int) -> dict[str, str]:
        try:
            user = await self.store.get_user(user_id)
        except SQLAlchemyError:
            logger.warning(
                "Profile lookup failed for user %s; using placeholder payer",
                user_id,
                exc_info=True,
            )
            await self.store.rollback()
            return dict(PLACEHOLDER_PAYER)

        if user is None:
            logger.info("No profile for user %s; using placeholder payer", user_id)
            return dict(PLACEHOLDER_PAYER)
        return {"studentName": user.full_name, "studentEmail": user.email}

    async def create_order(
        self, payload: OrderCreate, caller: Optional[Caller] = None
    ) -> tuple[Order, ReceiptResponse]:
        """Persist a new ``pending`` order and return it with its receipt.

        ``caller`` is the logged-in student when the request carried a token;
        such a caller may only order for their own user id.
        """
        self._validate(payload)
        if (
            caller is not None
            and not caller.is_anonymous
            and caller.user_id != payload.user_id
        ):
            raise Unauthorized("Orders can only be placed for the logged-in student")

        method = payload.payment_method or PaymentMethod.CASH
        payment_status = payload.payment_status or default_payment_status(method)
        payer = await self._payer_snapshot(payload.user_id)

        now = utc_now()
        order = Order(
            user_id=payload.user_id,
            items=json.dumps([item.snapshot() for item in payload.items]),
            total=float(payload.total),
            status=OrderStatus.PENDING,
            payment_method=method,
            payment_status=payment_status,
            payment_time=now,
            valid_till_time=now + timedelta(hours=self.settings.ORDER_VALIDITY_HOURS),
            payment_data=json.dumps(payer),
            created_at=now,
        )

        async with self._storage("create an order"):
            order = await self.store.insert(order)

        logger.info(
            "Created order %s for user %s (%d items, total=%.2f, method=%s)",
            order.id,
            order.user_id,
            len(payload.items),
            order.total,
            method.value,
        )
        return order, build_receipt(order)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def update_status(
        self, order_id: str, requested: Optional[str], caller: Caller
    ) -> Order:
        """Move an order along one edge of the status graph."""
        if caller.is_anonymous:
            raise Unauthorized()

        edge = transition_to(parse_status(requested))
        if edge.actor is Actor.OWNER and not caller.is_owner:
            raise Unauthorized("Only the canteen owner can update order status")

        async with self._storage("update an order status"):
            order = await self.store.get(order_id)
            if order is None:
                raise OrderNotFound()

            if edge.actor is Actor.OWNING_STUDENT and (
                caller.is_owner or caller.user_id != order.user_id
            ):
                raise Unauthorized("Only the student who placed the order can cancel it")

            if not can_transition(order.status, edge.target):
                self._reject(order, edge.target)

            applied = await self.store.compare_and_set_status(
                order_id, edge.source, edge.target
            )
            if not applied:
                # Lost a race: re-read so the message names the winning status.
                order = await self.store.get(order_id)
                if order is None:
                    raise OrderNotFound()
                self._reject(order, edge.target)

            order = await self.store.get(order_id)

        logger.info(
            "Order %s moved %s -> %s by %s",
            order_id,
            edge.source.value,
            edge.target.value,
            caller.email or caller.user_id,
        )
        return order

    def _reject(self, order: Order, target: OrderStatus) -> None:
        logger.info(
            "Rejected transition of order %s from %s to %s",
            order.id,
            order.status.value,
            target.value,
        )
        if target is OrderStatus.CANCELLED:
            raise IllegalTransition("Order already processed")
        if order.status in TERMINAL_STATUSES:
            raise IllegalTransition(f"Order is already {order.status.value}")
        allowed = [s.value for s in next_statuses(order.status) if s in OWNER_TARGETS]
        raise IllegalTransition(
            f"Cannot move order from {order.status.value} to {target.value}; "
            f"next allowed: {', '.join(allowed)}"
        )

    async def cancel_order(self, order_id: str, caller: Caller) -> Order:
        return await self.update_status(order_id, OrderStatus.CANCELLED.value, caller)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_all_orders(self, caller: Caller) -> list[Order]:
        if not caller.is_owner:
            raise Unauthorized()
        async with self._storage("list all orders"):
            return await self.store.list_all()

    async def list_orders_for_user(self, user_id: int) -> list[Order]:
        async with self._storage("list orders for a user"):
            return await self.store.list_for_user(user_id)
