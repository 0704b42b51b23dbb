"""CRUD operations for centers, equipment, users and orders."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.models import Center, Equipment, User, Order


# ── Center ───────────────────────────────────────────────

async def create_center(db: AsyncSession, name: str) -> Center:
    center = Center(name=name)
    db.add(center)
    await db.commit()
    await db.refresh(center)
    return center


async def get_center(db: AsyncSession, center_id: str) -> Center | None:
    return await db.get(Center, center_id)


async def list_centers(db: AsyncSession) -> list[Center]:
    result = await db.execute(select(Center).order_by(Center.name))
    return list(result.scalars().all())


# ── Equipment ────────────────────────────────────────────

async def create_equipment(
    db: AsyncSession, center_id: str, name: str, rent: Decimal | None,
    available: bool = True, description: str = "",
    location_details: str = "", images: list | None = None,
) -> Equipment:
    eq = Equipment(
        center_id=center_id, name=name, rent=rent, available=available,
        description=description, location_details=location_details,
        images=images or [],
    )
    db.add(eq)
    await db.commit()
    await db.refresh(eq)
    return eq


async def set_equipment_availability(db: AsyncSession, equipment: Equipment, available: bool) -> Equipment:
    equipment.available = available
    await db.commit()
    await db.refresh(equipment)
    return equipment


async def get_equipment(db: AsyncSession, center_id: str, equipment_id: str) -> Equipment | None:
    """Equipment is addressed under its center; ids from another center miss."""
    result = await db.execute(
        select(Equipment).where(
            Equipment.id == equipment_id,
            Equipment.center_id == center_id,
        )
    )
    return result.scalars().first()


async def list_equipment_for_center(db: AsyncSession, center_id: str, search: str = "") -> list[Equipment]:
    """Equipment of one center; ``search`` matches name or description, case-insensitively."""
    stmt = select(Equipment).where(Equipment.center_id == center_id)
    if search:
        term = search.lower()
        stmt = stmt.where(or_(
            func.lower(Equipment.name).contains(term),
            func.lower(Equipment.description).contains(term),
        ))
    result = await db.execute(stmt.order_by(Equipment.name))
    return list(result.scalars().all())


# ── User ─────────────────────────────────────────────────

async def create_user(
    db: AsyncSession, center_id: str, name: str, phone_number: str,
    address: str = "", image_url: str = "", role: str = "member",
) -> User:
    user = User(
        center_id=center_id, name=name, phone_number=phone_number,
        address=address, image_url=image_url, role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_phone(db: AsyncSession, phone_number: str, center_id: str | None = None) -> User | None:
    """Look up a user by phone; without a center, search every center."""
    stmt = select(User).where(User.phone_number == phone_number, User.is_active == True)
    if center_id is not None:
        stmt = stmt.where(User.center_id == center_id)
    result = await db.execute(stmt.order_by(User.created_at))
    return result.scalars().first()


# ── Order ────────────────────────────────────────────────

async def create_order(db: AsyncSession, **fields) -> Order:
    order = Order(status="Pending", **fields)
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


async def get_order(db: AsyncSession, center_id: str, order_id: str) -> Order | None:
    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.center_id == center_id)
    )
    return result.scalars().first()


async def list_orders_for_user(db: AsyncSession, center_id: str, user_id: str) -> list[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.center_id == center_id, Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(result.scalars().all())


async def update_order_status(
    db: AsyncSession, order: Order, status: str,
    allocated_start_time: datetime | None = None,
    allocated_end_time: datetime | None = None,
) -> Order:
    """Status and allocation window are the only mutable order fields."""
    order.status = status
    if allocated_start_time is not None:
        order.allocated_start_time = allocated_start_time
    if allocated_end_time is not None:
        order.allocated_end_time = allocated_end_time
    await db.commit()
    await db.refresh(order)
    return order
