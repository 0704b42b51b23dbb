"""Booking engine: the single write path for new orders.

Both the manual rental form and the assistant call ``place_booking``. The
hourly rate is always re-read from the requester's center catalog; callers
only ever supply an equipment id, a duration and the booking mode.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.config import get_settings
from chc_rental.db import crud
from chc_rental.models import BOOKING_MODES, Equipment
from chc_rental.services.errors import (
    AuthRequired, BookingError, EquipmentNotFound, EquipmentUnavailable, InvalidDuration,
    InvalidRate, PersistenceError,
)
from chc_rental.services.order_stream import OrderFeed, order_feed
from chc_rental.services.otp import generate_otp

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


class Requester(Protocol):
    user_id: str
    center_id: str
    display_name: str


@dataclass
class Quote:
    equipment_id: str
    equipment_name: str
    equipment_rent: Decimal
    booking_hrs: int
    estimated_cost: Decimal


@dataclass
class OrderReceipt:
    order_id: str
    equipment_id: str
    equipment_name: str
    equipment_rent: Decimal
    booking_hrs: int
    estimated_cost: Decimal
    delivery_otp: str
    booking_mode: str
    message: str


@dataclass
class BookingResult:
    success: bool
    message: str
    receipt: OrderReceipt | None = None
    error: BookingError | None = None

    @property
    def code(self) -> str:
        return "ok" if self.success else self.error.code


def format_amount(amount: Decimal) -> str:
    """Render money without trailing zeros: 200.00 -> '200', 37.50 -> '37.5'."""
    q = amount.quantize(_CENTS)
    if q == q.to_integral_value():
        return str(q.to_integral_value())
    return format(q.normalize(), "f")


def resolve_rate(raw) -> Decimal:
    """Validate a stored hourly rate; zero is a data error, not a free rental."""
    if raw is None or isinstance(raw, bool):
        raise InvalidRate()
    try:
        rate = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise InvalidRate()
    if not rate.is_finite() or rate <= 0:
        raise InvalidRate()
    return rate


def validate_hours(hours) -> int:
    cfg = get_settings().booking
    if isinstance(hours, bool) or not isinstance(hours, int):
        raise InvalidDuration()
    if hours < cfg.min_booking_hours or hours > cfg.max_booking_hours:
        raise InvalidDuration(
            f"Booking hours must be between {cfg.min_booking_hours} and {cfg.max_booking_hours}."
        )
    return hours


def compute_cost(rate: Decimal, hours: int) -> Decimal:
    return (rate * hours).quantize(_CENTS)


def receipt_message(order_id: str, name: str, hours: int, cost: Decimal) -> str:
    currency = get_settings().booking.currency_symbol
    return (
        f"Successfully booked {name} for {hours} hours "
        f"(Order ID: {order_id[:4]}). Estimated cost: {currency}{format_amount(cost)}."
    )


async def _load_equipment(db: AsyncSession, center_id: str, equipment_id: str) -> Equipment:
    if not equipment_id:
        raise EquipmentNotFound()
    try:
        equipment = await crud.get_equipment(db, center_id, equipment_id)
    except SQLAlchemyError as e:
        logger.error(f"Equipment lookup failed for {center_id}/{equipment_id}: {e}")
        raise PersistenceError("Failed to retrieve equipment details from database.")
    if equipment is None:
        raise EquipmentNotFound(f"Equipment with ID {equipment_id} not found at your center.")
    return equipment


async def quote(db: AsyncSession, center_id: str, equipment_id: str, hours) -> Quote:
    """Cost preview with the same validation as a booking. Raises BookingError."""
    hours = validate_hours(hours)
    equipment = await _load_equipment(db, center_id, equipment_id)
    if not equipment.available:
        raise EquipmentUnavailable(f"{equipment.name} is currently rented out.")
    rate = resolve_rate(equipment.rent)
    return Quote(
        equipment_id=equipment.id,
        equipment_name=equipment.name or "Unnamed Equipment",
        equipment_rent=rate,
        booking_hrs=hours,
        estimated_cost=compute_cost(rate, hours),
    )


async def _place(
    db: AsyncSession,
    requester: Requester | None,
    equipment_id: str,
    hours,
    booking_mode: str,
    rng: random.Random | None,
) -> OrderReceipt:
    if requester is None or not requester.user_id or not requester.center_id:
        raise AuthRequired()
    if booking_mode not in BOOKING_MODES:
        raise ValueError(f"Unknown booking mode: {booking_mode}")

    q = await quote(db, requester.center_id, equipment_id, hours)
    otp = generate_otp(rng)

    try:
        order = await crud.create_order(
            db,
            center_id=requester.center_id,
            equipment_id=q.equipment_id,
            equipment_name=q.equipment_name,
            equipment_rent=q.equipment_rent,
            booking_hrs=q.booking_hrs,
            estimated_cost=q.estimated_cost,
            delivery_otp=otp,
            booking_mode=booking_mode,
            user_id=requester.user_id,
            user_name=requester.display_name or "",
        )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Order write failed for user {requester.user_id}: {e}")
        raise PersistenceError()

    logger.info(
        "Order %s booked: %s x %dh = %s (%s)",
        order.id, q.equipment_name, q.booking_hrs, q.estimated_cost, booking_mode,
    )
    return OrderReceipt(
        order_id=order.id,
        equipment_id=q.equipment_id,
        equipment_name=q.equipment_name,
        equipment_rent=q.equipment_rent,
        booking_hrs=q.booking_hrs,
        estimated_cost=q.estimated_cost,
        delivery_otp=otp,
        booking_mode=booking_mode,
        message=receipt_message(order.id, q.equipment_name, q.booking_hrs, q.estimated_cost),
    )


async def place_booking(
    db: AsyncSession,
    requester: Requester | None,
    equipment_id: str,
    hours,
    booking_mode: str,
    rng: random.Random | None = None,
    feed: OrderFeed | None = None,
) -> BookingResult:
    """Validate, price and persist one booking. Never raises BookingError."""
    try:
        receipt = await _place(db, requester, equipment_id, hours, booking_mode, rng)
    except BookingError as e:
        logger.warning(f"Booking rejected ({e.code}): {e.message}")
        return BookingResult(success=False, message=e.message, error=e)

    await (feed or order_feed).publish(requester.center_id, requester.user_id, db)
    return BookingResult(success=True, message=receipt.message, receipt=receipt)
