"""Persistence for orders.

The store owns the ``orders`` rows. Inserts are append-only and the only
update is the conditional status swap in ``compare_and_set_status``, which
checks the current status inside the UPDATE itself so two concurrent
transitions from the same source cannot both succeed.
"""

from typing import Optional

from services.canteen_service.models import Order, OrderStatus, User
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession


class OrderStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, order: Order) -> Order:
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)
        return order

    async def get(self, order_id: str) -> Optional[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def compare_and_set_status(
        self, order_id: str, expected: OrderStatus, new: OrderStatus
    ) -> bool:
        """Move ``order_id`` to ``new`` only if it is still ``expected``.

        Returns ``False`` when no row matched, i.e. the order was missing or
        another writer changed its status first.
        """
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(status=new)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def list_all(self) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: int) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def rollback(self) -> None:
        await self.db.rollback()
