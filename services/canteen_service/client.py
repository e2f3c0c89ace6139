"""Async HTTP client for the canteen API and polling helpers.

Both the student view and the owner view observe status changes by
re-fetching full snapshots on a fixed interval. A failed poll is logged and
skipped; the next tick simply tries again.

Usage:
    async with CanteenClient("http://localhost:8000") as client:
        await client.login("harshad.1251090072@vit.edu", "1251090072")
        watcher = OrderWatcher(client, user_id=1, on_change=print)
        await watcher.run()
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.canteen_service.models import OrderStatus

logger = get_logger(__name__)

OWNER_HEADER = "X-Owner-Email"


class CanteenAPIError(Exception):
    """Non-success response from the canteen API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class CanteenClient:
    """Thin wrapper over every canteen endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )
        self.access_token: Optional[str] = None
        self.user: Optional[dict] = None

    async def __aenter__(self) -> "CanteenClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        response = await self._client.request(method, path, **kwargs)
        try:
            data = response.json()
        except ValueError:
            raise CanteenAPIError(
                response.status_code, f"Server Error: {response.text[:100]}"
            )
        if response.is_error or data.get("success") is False:
            raise CanteenAPIError(response.status_code, data.get("error", "Request failed"))
        return data

    def _bearer(self) -> dict:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def health(self) -> dict:
        return await self._request("GET", "/healthz")

    async def login(self, email: str, password: str) -> dict:
        data = await self._request(
            "POST", "/login", json={"email": email, "password": password}
        )
        self.access_token = data["access_token"]
        self.user = data["user"]
        return data["user"]

    async def create_order(
        self,
        user_id: int,
        items: list[dict],
        total: float,
        payment_method: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> dict:
        body: dict[str, Any] = {"userId": user_id, "items": items, "total": total}
        if payment_method:
            body["paymentMethod"] = payment_method
        if payment_status:
            body["paymentStatus"] = payment_status
        return await self._request(
            "POST", "/orders", json=body, headers=self._bearer()
        )

    async def my_orders(self, user_id: int) -> list[dict]:
        data = await self._request("GET", f"/orders/{user_id}")
        return data["orders"]

    async def all_orders(self, owner_email: str) -> list[dict]:
        data = await self._request(
            "GET", "/orders/all", headers={OWNER_HEADER: owner_email}
        )
        return data["orders"]

    async def update_status(self, order_id: str, status: str, owner_email: str) -> dict:
        data = await self._request(
            "PATCH",
            f"/orders/{order_id}",
            json={"status": status},
            headers={OWNER_HEADER: owner_email},
        )
        return data["order"]

    async def cancel_order(self, order_id: str) -> dict:
        data = await self._request(
            "PATCH", f"/orders/{order_id}/cancel", headers=self._bearer()
        )
        return data["order"]


# ============================================================================
# POLLING
# ============================================================================


async def poll_snapshots(
    fetch: Callable[[], Awaitable[list[dict]]],
    interval: Optional[float] = None,
    max_polls: Optional[int] = None,
) -> AsyncIterator[list[dict]]:
    """Yield a fresh snapshot every ``interval`` seconds, skipping failures."""
    interval = get_settings().POLL_INTERVAL_SECONDS if interval is None else interval
    polls = 0
    while max_polls is None or polls < max_polls:
        polls += 1
        try:
            yield await fetch()
        except (CanteenAPIError, httpx.HTTPError) as exc:
            logger.debug("Poll failed, retrying next interval: %s", exc)
        if max_polls is None or polls < max_polls:
            await asyncio.sleep(interval)


@dataclass(frozen=True)
class StatusChange:
    order_id: str
    previous: str
    current: str


ChangeCallback = Callable[[StatusChange], Union[None, Awaitable[None]]]


class OrderWatcher:
    """Watch a student's latest order and report kitchen progress.

    The first poll only records the current status. Afterwards, a change of
    the latest order into ACCEPTED or READY is reported through ``on_change``.
    """

    NOTIFY_STATUSES = frozenset({OrderStatus.ACCEPTED.value, OrderStatus.READY.value})

    def __init__(
        self,
        client: CanteenClient,
        user_id: int,
        on_change: ChangeCallback,
        interval: Optional[float] = None,
    ):
        self.client = client
        self.user_id = user_id
        self.on_change = on_change
        self.interval = interval
        self._last_order_id: Optional[str] = None
        self._last_status: Optional[str] = None

    async def observe(self, orders: list[dict]) -> Optional[StatusChange]:
        if not orders:
            return None

        latest = orders[0]
        order_id, status = latest["id"], latest["status"]
        change = None
        if (
            order_id == self._last_order_id
            and self._last_status is not None
            and status != self._last_status
            and status in self.NOTIFY_STATUSES
        ):
            change = StatusChange(order_id, self._last_status, status)
            result = self.on_change(change)
            if inspect.isawaitable(result):
                await result

        self._last_order_id = order_id
        self._last_status = status
        return change

    async def run(self, max_polls: Optional[int] = None) -> None:
        async for orders in poll_snapshots(
            lambda: self.client.my_orders(self.user_id),
            interval=self.interval,
            max_polls=max_polls,
        ):
            await self.observe(orders)
