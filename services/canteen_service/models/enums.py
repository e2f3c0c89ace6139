"""Enum definitions for canteen service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    OWNER = "OWNER"


class OrderStatus(str, enum.Enum):
    # The initial state is lowercase in stored rows; existing clients match on it.
    PENDING = "pending"
    ACCEPTED = "ACCEPTED"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    UPI = "UPI"
    GPAY = "GPAY"
    PHONEPE = "PHONEPE"


class ReceiptPaymentStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    PENDING = "PENDING"
    FAILED = "FAILED"


# Labels written to orders.payment_status at creation. Non-cash methods are
# simulated and recorded as paid immediately.
CASH_PAYMENT_LABEL = "CASH"
PAID_PAYMENT_LABEL = "PAID"
