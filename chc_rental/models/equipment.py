from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Boolean, ForeignKey, JSON, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chc_rental.models.base import Base, ULIDMixin


class Equipment(Base, ULIDMixin):
    __tablename__ = "equipment"

    center_id: Mapped[str] = mapped_column(String(26), ForeignKey("centers.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    rent: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True, default=None)  # per hour
    available: Mapped[bool] = mapped_column(Boolean, default=True)
    description: Mapped[str] = mapped_column(Text, default="")
    location_details: Mapped[str] = mapped_column(String(500), default="")
    images: Mapped[list] = mapped_column(JSON, default=list)

    center = relationship("Center", back_populates="equipment")
