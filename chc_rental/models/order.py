"""Rental order: created Pending by the booking engine, advanced by back office."""

from __future__ import annotations

import secrets
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from chc_rental.models.base import Base, ULIDMixin, utcnow

ORDER_STATUSES = ("Pending", "Allocated", "Delivered", "Returned")
BOOKING_MODES = ("app", "voice-bot")


def new_order_id() -> str:
    """Random 26-char hex id; its first four characters serve as the short order number."""
    return secrets.token_hex(13)


class Order(Base, ULIDMixin):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_order_id)
    center_id: Mapped[str] = mapped_column(String(26), ForeignKey("centers.id"), index=True)
    equipment_id: Mapped[str] = mapped_column(String(26))
    equipment_name: Mapped[str] = mapped_column(String(255))
    equipment_rent: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    booking_hrs: Mapped[int] = mapped_column(Integer)
    estimated_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    delivery_otp: Mapped[str] = mapped_column(String(4))
    status: Mapped[str] = mapped_column(String(20), default="Pending")  # Pending | Allocated | Delivered | Returned
    booking_mode: Mapped[str] = mapped_column(String(20))  # app | voice-bot
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    user_name: Mapped[str] = mapped_column(String(255), default="")
    allocated_start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    allocated_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
