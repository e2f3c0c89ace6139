"""Canteen Service models package."""

from services.canteen_service.models.core import Order, User, new_order_id
from services.canteen_service.models.enums import (
    CASH_PAYMENT_LABEL,
    PAID_PAYMENT_LABEL,
    OrderStatus,
    PaymentMethod,
    ReceiptPaymentStatus,
    UserRole,
)

__all__ = [
    "CASH_PAYMENT_LABEL",
    "Order",
    "OrderStatus",
    "PAID_PAYMENT_LABEL",
    "PaymentMethod",
    "ReceiptPaymentStatus",
    "User",
    "UserRole",
    "new_order_id",
]
