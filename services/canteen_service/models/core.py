"""Canteen models: users (identity store) and orders (order store)."""

import json
import uuid
from datetime import datetime
from typing import Any

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.canteen_service.models.enums import (
    OrderStatus,
    PaymentMethod,
    UserRole,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column


def new_order_id() -> str:
    """Random, non-enumerable order identifier (UUID4, 122 random bits)."""
    return uuid.uuid4().hex


# ============================================================================
# USERS
# ============================================================================


class User(Base):
    """Seeded canteen users. Immutable after provisioning."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(
            UserRole,
            values_callable=enum_values,
            native_enum=False,
            length=16,
            name="canteen_user_role_enum",
        ),
        nullable=False,
        default=UserRole.STUDENT,
    )
    # PRN for students, a fixed literal for the owner
    secret: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self):
        return f"<User {self.id} {self.email} role={self.role}>"


# ============================================================================
# ORDERS
# ============================================================================


class Order(Base):
    """Placed orders. Only ``status`` changes after insert."""

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_order_id)
    # Soft reference: orders survive a missing profile
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # JSON text snapshot of the cart at checkout
    items: Mapped[str] = mapped_column(Text, nullable=False)
    total: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            native_enum=False,
            length=16,
            name="canteen_order_status_enum",
        ),
        nullable=False,
        default=OrderStatus.PENDING,
    )

    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            native_enum=False,
            length=16,
            name="canteen_payment_method_enum",
        ),
        nullable=False,
        default=PaymentMethod.CASH,
    )
    payment_status: Mapped[str] = mapped_column(String(32), nullable=False)
    payment_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_till_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    # JSON text snapshot of payer display data
    payment_data: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_orders_user_id_created_at", "user_id", "created_at"),
        Index("ix_orders_created_at", "created_at"),
    )

    @property
    def line_items(self) -> list[dict[str, Any]]:
        return json.loads(self.items)

    @property
    def payer(self) -> dict[str, Any]:
        return json.loads(self.payment_data)

    def __repr__(self):
        return f"<Order {self.id} user={self.user_id} status={self.status}>"
