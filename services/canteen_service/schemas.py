"""Pydantic schemas for canteen service."""

import json
from datetime import datetime
from typing import Any, Optional, Union

from libs.common.datetime_utils import ensure_utc
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel
from services.canteen_service.models import (
    Order,
    OrderStatus,
    PaymentMethod,
    ReceiptPaymentStatus,
    User,
    UserRole,
)

# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class LoginRequest(BaseModel):
    email: str
    password: str


class UserPublic(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User, role: UserRole) -> "UserPublic":
        return cls(id=user.id, email=user.email, full_name=user.full_name, role=role)


class LoginResponse(BaseModel):
    success: bool = True
    user: UserPublic
    access_token: str
    token_type: str = "bearer"


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


NUMERIC_LINE_FIELDS = ("unit_price", "price", "quantity")


def _is_plain_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class OrderLineItem(BaseModel):
    """One cart line. Unknown keys (image, category, ...) are kept as sent."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[Union[int, str]] = None
    name: str = Field(..., min_length=1)
    unit_price: Optional[float] = Field(
        None, alias="unitPrice", ge=0, allow_inf_nan=False
    )
    # The web client sends the unit price as ``price``
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    quantity: int = Field(..., ge=1)

    # The line as submitted; snapshot() stores it with numeric fields normalized.
    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="wrap")
    @classmethod
    def keep_submitted_line(cls, data: Any, handler) -> "OrderLineItem":
        item = handler(data)
        if isinstance(data, dict):
            item._raw = dict(data)
        return item

    @model_validator(mode="after")
    def require_unit_price(self) -> "OrderLineItem":
        if self.unit_price is None and self.price is None:
            raise ValueError("line item needs a unitPrice")
        return self

    @property
    def effective_unit_price(self) -> float:
        return self.unit_price if self.unit_price is not None else self.price

    def snapshot(self) -> dict[str, Any]:
        """The line as sent, with coerced numbers in place of strings like ``"2"``."""
        if not self._raw:
            data = self.model_dump(by_alias=True, exclude_unset=True)
            data.update(self.model_extra or {})
            return data

        data = dict(self._raw)
        for name in NUMERIC_LINE_FIELDS:
            alias = type(self).model_fields[name].alias
            for key in {name, alias or name}:
                if key in data and not _is_plain_number(data[key]):
                    data[key] = getattr(self, name)
        return data


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[int] = Field(None, alias="userId")
    items: Optional[list[OrderLineItem]] = None
    total: Optional[float] = Field(None, allow_inf_nan=False)
    payment_method: Optional[PaymentMethod] = Field(None, alias="paymentMethod")
    payment_status: Optional[str] = Field(None, alias="paymentStatus", max_length=32)


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    user_id: int
    items: list[dict[str, Any]]
    total: float
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: str
    payment_time: datetime
    valid_till_time: datetime
    payment_data: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            user_id=order.user_id,
            items=json.loads(order.items),
            total=order.total,
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            payment_time=ensure_utc(order.payment_time),
            valid_till_time=ensure_utc(order.valid_till_time),
            payment_data=json.loads(order.payment_data),
            created_at=ensure_utc(order.created_at),
        )


class ReceiptResponse(BaseModel):
    """Read-only projection of an order for the payment receipt."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    student_name: str
    student_email: str
    order_id: str
    items: list[dict[str, Any]]
    total_amount: float
    payment_method: PaymentMethod
    payment_status: ReceiptPaymentStatus
    payment_time: datetime
    valid_till_time: datetime
    order_status: OrderStatus


class OrderCreatedResponse(BaseModel):
    success: bool = True
    order: OrderResponse
    receipt: ReceiptResponse


class OrderEnvelope(BaseModel):
    success: bool = True
    order: OrderResponse


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[OrderResponse]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
