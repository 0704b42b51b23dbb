"""Live order feed and the tracker that turns snapshots into status notifications.

``OrderFeed`` is an in-process event source keyed by ``(center_id, user_id)``.
Every publish reloads the user's orders and hands a versioned snapshot to each
live subscription. ``OrderStreamTracker`` keeps the ordered list for one view
and diffs successive snapshots by order id to raise transient notifications.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db import crud
from chc_rental.models import Order
from chc_rental.services.errors import SubscriptionError

logger = logging.getLogger(__name__)

# status -> (severity, message template); Pending never notifies
STATUS_NOTIFICATIONS: dict[str, tuple[str, str]] = {
    "Allocated": ("info", "Order #{short_id} allocated!"),
    "Delivered": ("success", "Order #{short_id} delivered."),
    "Returned": ("success", "Order #{short_id} completed!"),
}


@dataclass(frozen=True)
class OrderView:
    id: str
    equipment_name: str
    booking_hrs: int
    estimated_cost: Decimal
    status: str
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> OrderView:
        return cls(
            id=order.id,
            equipment_name=order.equipment_name or "Unknown Equipment",
            booking_hrs=order.booking_hrs or 0,
            estimated_cost=order.estimated_cost or Decimal("0"),
            status=order.status or "Pending",
            created_at=order.created_at,
        )


@dataclass(frozen=True)
class OrderSnapshot:
    version: int
    orders: tuple[OrderView, ...]


@dataclass(frozen=True)
class Notification:
    order_id: str
    status: str
    severity: str  # info | success
    message: str


def diff_statuses(previous: Iterable[OrderView], current: Iterable[OrderView]) -> list[Notification]:
    """Notifications for orders whose status changed between two snapshots.

    Orders are matched strictly by id and only ``status`` is compared. Orders
    missing from ``previous`` are new and do not notify.
    """
    before = {o.id: o.status for o in previous}
    notes = []
    for order in current:
        old_status = before.get(order.id)
        if old_status is None or old_status == order.status:
            continue
        template = STATUS_NOTIFICATIONS.get(order.status)
        if template is None:
            continue
        severity, message = template
        notes.append(Notification(
            order_id=order.id,
            status=order.status,
            severity=severity,
            message=message.format(short_id=order.id[:4]),
        ))
    return notes


def sort_orders(orders: Iterable[OrderView]) -> list[OrderView]:
    """Newest first by ``created_at``; arrival order is irrelevant."""
    return sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)


# ── Feed ─────────────────────────────────────────────────

SnapshotCallback = Callable[[OrderSnapshot], None]
ErrorCallback = Callable[[SubscriptionError], None]


class Subscription:
    def __init__(self, feed: OrderFeed, key: tuple[str, str],
                 on_snapshot: SnapshotCallback, on_error: ErrorCallback | None = None):
        self._feed = feed
        self.key = key
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self.active = True

    def cancel(self) -> None:
        """Stop delivery immediately; nothing is delivered after this returns."""
        if not self.active:
            return
        self.active = False
        self._feed._remove(self)

    def _deliver(self, snapshot: OrderSnapshot) -> None:
        if self.active:
            self._on_snapshot(snapshot)

    def _fail(self, error: SubscriptionError) -> None:
        """Terminal: the subscription is cancelled before the error is reported."""
        if not self.active:
            return
        self.cancel()
        if self._on_error is not None:
            self._on_error(error)


class OrderFeed:
    def __init__(self):
        self._subscriptions: dict[tuple[str, str], list[Subscription]] = {}
        self._versions = itertools.count(1)

    def subscribe(self, center_id: str, user_id: str,
                  on_snapshot: SnapshotCallback,
                  on_error: ErrorCallback | None = None) -> Subscription:
        key = (center_id, user_id)
        sub = Subscription(self, key, on_snapshot, on_error)
        self._subscriptions.setdefault(key, []).append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        subs = self._subscriptions.get(sub.key, [])
        if sub in subs:
            subs.remove(sub)
        if not subs:
            self._subscriptions.pop(sub.key, None)

    def subscriber_count(self, center_id: str, user_id: str) -> int:
        return len(self._subscriptions.get((center_id, user_id), []))

    async def publish(self, center_id: str, user_id: str, db: AsyncSession) -> OrderSnapshot | None:
        """Reload the user's orders and deliver them to every live subscription.

        The version is taken before the load so that, when two publishes
        overlap, the one started later carries the higher version even if
        it finishes first.
        """
        key = (center_id, user_id)
        if not self._subscriptions.get(key):
            return None
        version = next(self._versions)
        try:
            orders = await crud.list_orders_for_user(db, center_id, user_id)
        except Exception as e:
            logger.error(f"Order snapshot load failed for {center_id}/{user_id}: {e}")
            error = SubscriptionError("Could not load your orders. Please try again.")
            for sub in list(self._subscriptions.get(key, [])):
                sub._fail(error)
            return None

        snapshot = OrderSnapshot(
            version=version,
            orders=tuple(OrderView.from_order(o) for o in orders),
        )
        for sub in list(self._subscriptions.get(key, [])):
            sub._deliver(snapshot)
        return snapshot


order_feed = OrderFeed()


# ── Tracker ──────────────────────────────────────────────

class OrderStreamTracker:
    """Live, newest-first view of one user's orders with status notifications."""

    def __init__(
        self,
        feed: OrderFeed,
        on_notification: Callable[[Notification], None] | None = None,
        on_change: Callable[[list[OrderView]], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ):
        self._feed = feed
        self._on_notification = on_notification
        self._on_change = on_change
        self._on_error = on_error
        self._subscription: Subscription | None = None
        self.orders: list[OrderView] = []
        self.loading = False
        self.error: str | None = None
        self._last_version = 0
        self._has_snapshot = False

    def watch(self, center_id: str, user_id: str) -> Subscription:
        """Track ``(center_id, user_id)``, cancelling any previous subscription first."""
        self.close()
        self.orders = []
        self.error = None
        self.loading = True
        self._last_version = 0
        self._has_snapshot = False
        self._subscription = self._feed.subscribe(center_id, user_id, self.apply_snapshot, self.fail)
        return self._subscription

    def apply_snapshot(self, snapshot: OrderSnapshot) -> list[Notification]:
        if snapshot.version <= self._last_version:
            logger.debug(f"Dropping stale order snapshot v{snapshot.version}")
            return []
        self._last_version = snapshot.version

        current = sort_orders(snapshot.orders)
        notes = diff_statuses(self.orders, current) if self._has_snapshot else []
        self.orders = current
        self._has_snapshot = True
        self.loading = False
        self.error = None

        if self._on_change is not None:
            self._on_change(current)
        if self._on_notification is not None:
            for note in notes:
                self._on_notification(note)
        return notes

    def fail(self, error: SubscriptionError) -> None:
        logger.warning(f"Order subscription failed: {error}")
        self.close()
        self.loading = False
        self.error = str(error)
        if self._on_error is not None:
            self._on_error(self.error)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
