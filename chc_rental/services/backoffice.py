"""Back-office status changes. After booking, this is the only writer of order status."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db import crud
from chc_rental.models import Order
from chc_rental.services.errors import InvalidTransition
from chc_rental.services.order_stream import OrderFeed, order_feed

logger = logging.getLogger(__name__)

NEXT_STATUS = {
    "Pending": "Allocated",
    "Allocated": "Delivered",
    "Delivered": "Returned",
}


def check_transition(current: str, new: str) -> None:
    """Status moves exactly one step forward: Pending → Allocated → Delivered → Returned."""
    expected = NEXT_STATUS.get(current)
    if expected is None:
        raise InvalidTransition(f"Order is already {current}.")
    if new != expected:
        raise InvalidTransition(f"Cannot move order from {current} to {new}; next status is {expected}.")


async def advance_order_status(
    db: AsyncSession,
    order: Order,
    new_status: str,
    allocated_start_time: datetime | None = None,
    allocated_end_time: datetime | None = None,
    feed: OrderFeed | None = None,
) -> Order:
    check_transition(order.status, new_status)
    if new_status != "Allocated" and (allocated_start_time or allocated_end_time):
        raise InvalidTransition("Allocation window can only be set when allocating.")
    if allocated_start_time and allocated_end_time and allocated_end_time <= allocated_start_time:
        raise InvalidTransition("Allocation must end after it starts.")

    previous = order.status
    order = await crud.update_order_status(
        db, order, new_status,
        allocated_start_time=allocated_start_time,
        allocated_end_time=allocated_end_time,
    )
    logger.info("Order %s: %s -> %s", order.id, previous, new_status)
    await (feed or order_feed).publish(order.center_id, order.user_id, db)
    return order
