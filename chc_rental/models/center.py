"""Service center (CHC): owns its equipment catalog, users and order ledger."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chc_rental.models.base import Base, ULIDMixin


class Center(Base, ULIDMixin):
    __tablename__ = "centers"

    name: Mapped[str] = mapped_column(String(255))

    equipment = relationship("Equipment", back_populates="center")
    users = relationship("User", back_populates="center")
