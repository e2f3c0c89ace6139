"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    order = OrderFactory.create(user_id=student.id, status=OrderStatus.READY)
    db_session.add(order)
    await db_session.commit()
"""

import json
import uuid
from datetime import datetime, timedelta, timezone

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_prn() -> str:
    return str(uuid.uuid4().int)[:10]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        from services.canteen_service.models import User, UserRole

        prn = overrides.pop("prn", None) or _unique_prn()
        defaults = {
            "email": f"test.{prn}@vit.edu",
            "full_name": "Test Student",
            "role": UserRole.STUDENT,
            "secret": prn,
        }
        defaults.update(overrides)
        return User(**defaults)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderFactory:
    @staticmethod
    def create(user_id=1, **overrides):
        from services.canteen_service.models import (
            Order,
            OrderStatus,
            PaymentMethod,
            new_order_id,
        )

        now = overrides.pop("created_at", None) or _now()
        defaults = {
            "id": new_order_id(),
            "user_id": user_id,
            "items": json.dumps([{"name": "Samosa", "quantity": 2, "unitPrice": 20}]),
            "total": 42.0,
            "status": OrderStatus.PENDING,
            "payment_method": PaymentMethod.CASH,
            "payment_status": "CASH",
            "payment_time": now,
            "valid_till_time": now + timedelta(hours=2),
            "payment_data": json.dumps(
                {"studentName": "Test Student", "studentEmail": "test@vit.edu"}
            ),
            "created_at": now,
        }
        defaults.update(overrides)
        return Order(**defaults)
