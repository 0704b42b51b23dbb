"""Equipment catalog reader: per-center listings, lookups and snapshots."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db import crud
from chc_rental.models import Equipment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: str
    rent: Decimal


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of one center's catalog, passed explicitly to the assistant."""

    center_id: str
    items: tuple[CatalogItem, ...] = ()
    fetched_at: float = field(default_factory=time.monotonic)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_by_name(self, name: str) -> CatalogItem | None:
        """Case-insensitive exact match; never guesses between near names."""
        wanted = name.strip().lower()
        for item in self.items:
            if item.name.lower() == wanted:
                return item
        return None

    def is_stale(self, max_age: float, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        return now - self.fetched_at > max_age


async def list_equipment(db: AsyncSession, center_id: str, query: str = "") -> list[Equipment]:
    return await crud.list_equipment_for_center(db, center_id, query.strip())


async def get_equipment(db: AsyncSession, center_id: str, equipment_id: str) -> Equipment | None:
    if not center_id or not equipment_id:
        return None
    return await crud.get_equipment(db, center_id, equipment_id)


async def load_snapshot(db: AsyncSession, center_id: str) -> CatalogSnapshot:
    equipment = await crud.list_equipment_for_center(db, center_id)
    items = tuple(
        CatalogItem(id=e.id, name=e.name or "Unnamed Equipment", rent=e.rent or Decimal("0"))
        for e in equipment
    )
    logger.info("Loaded %d equipment items for center %s", len(items), center_id)
    return CatalogSnapshot(center_id=center_id, items=items)


class CatalogCache:
    """Per-center snapshots, reloaded on demand or once stale or empty."""

    def __init__(self, ttl: float):
        self._ttl = ttl
        self._snapshots: dict[str, CatalogSnapshot] = {}

    async def get(self, db: AsyncSession, center_id: str, refresh: bool = False) -> CatalogSnapshot:
        snap = self._snapshots.get(center_id)
        if refresh or snap is None or snap.is_empty or snap.is_stale(self._ttl):
            snap = await load_snapshot(db, center_id)
            self._snapshots[center_id] = snap
        return snap

    def invalidate(self, center_id: str) -> None:
        self._snapshots.pop(center_id, None)
