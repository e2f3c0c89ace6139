"""Unit tests for the order store's conditional status update.

Concurrency tests give each contender its own session (and so its own SQLite
connection) on the same database file.
"""

import asyncio

import pytest
from services.canteen_service.errors import IllegalTransition, Unauthorized
from services.canteen_service.models import OrderStatus
from services.canteen_service.services.order_store import OrderStore
from tests.conftest import make_service, owner_caller, student_caller
from tests.factories import OrderFactory


async def _insert_pending(session_factory, user_id):
    async with session_factory() as session:
        order = OrderFactory.create(user_id)
        session.add(order)
        await session.commit()
        return order.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_compare_and_set_applies_on_expected_status(db_session, users):
    order = OrderFactory.create(1)
    db_session.add(order)
    await db_session.commit()
    store = OrderStore(db_session)

    assert await store.compare_and_set_status(
        order.id, OrderStatus.PENDING, OrderStatus.ACCEPTED
    )
    assert (await store.get(order.id)).status is OrderStatus.ACCEPTED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_compare_and_set_refuses_stale_status(db_session, users):
    order = OrderFactory.create(1, status=OrderStatus.READY)
    db_session.add(order)
    await db_session.commit()
    store = OrderStore(db_session)

    assert not await store.compare_and_set_status(
        order.id, OrderStatus.PENDING, OrderStatus.ACCEPTED
    )
    assert not await store.compare_and_set_status(
        "missing", OrderStatus.PENDING, OrderStatus.ACCEPTED
    )
    assert (await store.get(order.id)).status is OrderStatus.READY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_concurrent_accepts_have_one_winner(session_factory, users):
    order_id = await _insert_pending(session_factory, 1)

    async with session_factory() as s1, session_factory() as s2:
        results = await asyncio.gather(
            make_service(s1).update_status(order_id, "ACCEPTED", owner_caller()),
            make_service(s2).update_status(order_id, "ACCEPTED", owner_caller()),
            return_exceptions=True,
        )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], IllegalTransition)

    async with session_factory() as session:
        stored = await OrderStore(session).get(order_id)
    assert stored.status is OrderStatus.ACCEPTED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accept_and_cancel_race_has_one_winner(session_factory, student):
    order_id = await _insert_pending(session_factory, student.id)

    async with session_factory() as s1, session_factory() as s2:
        results = await asyncio.gather(
            make_service(s1).update_status(order_id, "ACCEPTED", owner_caller()),
            make_service(s2).cancel_order(order_id, student_caller(student)),
            return_exceptions=True,
        )

    winners = [r for r in results if not isinstance(r, Exception)]
    assert len(winners) == 1
    assert not any(isinstance(r, Unauthorized) for r in results)

    async with session_factory() as session:
        stored = await OrderStore(session).get(order_id)
    assert stored.status is winners[0].status
    assert stored.status in (OrderStatus.ACCEPTED, OrderStatus.CANCELLED)
