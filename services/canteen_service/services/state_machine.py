"""Order status graph and the actor allowed to take each edge."""

import enum
from dataclasses import dataclass
from typing import Optional

from services.canteen_service.errors import InvalidStatus
from services.canteen_service.models import OrderStatus


class Actor(str, enum.Enum):
    OWNER = "owner"
    OWNING_STUDENT = "owning_student"


@dataclass(frozen=True)
class Transition:
    source: OrderStatus
    target: OrderStatus
    actor: Actor


# Every non-initial status is reachable from exactly one source.
TRANSITIONS: dict[OrderStatus, Transition] = {
    OrderStatus.ACCEPTED: Transition(
        OrderStatus.PENDING, OrderStatus.ACCEPTED, Actor.OWNER
    ),
    OrderStatus.READY: Transition(OrderStatus.ACCEPTED, OrderStatus.READY, Actor.OWNER),
    OrderStatus.COMPLETED: Transition(
        OrderStatus.READY, OrderStatus.COMPLETED, Actor.OWNER
    ),
    OrderStatus.CANCELLED: Transition(
        OrderStatus.PENDING, OrderStatus.CANCELLED, Actor.OWNING_STUDENT
    ),
}

# Statuses the owner queue may set directly.
OWNER_TARGETS = frozenset(
    target for target, edge in TRANSITIONS.items() if edge.actor is Actor.OWNER
)

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def parse_status(value: Optional[str]) -> OrderStatus:
    """Map a requested status string onto ``OrderStatus``."""
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatus(f"Invalid status: {value!r}") from None


def transition_to(target: OrderStatus) -> Transition:
    """Return the edge leading into ``target``; the initial state has none."""
    edge = TRANSITIONS.get(target)
    if edge is None:
        raise InvalidStatus(f"Orders cannot be moved to {target.value!r}")
    return edge


def can_transition(src: OrderStatus, dst: OrderStatus) -> bool:
    """Return ``True`` if an order can move from ``src`` to ``dst``."""
    edge = TRANSITIONS.get(dst)
    return edge is not None and edge.source is src


def next_statuses(src: OrderStatus) -> list[OrderStatus]:
    return [edge.target for edge in TRANSITIONS.values() if edge.source is src]
