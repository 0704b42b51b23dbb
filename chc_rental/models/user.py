"""Phone-authenticated users, their sessions and pending verification codes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chc_rental.models.base import Base, ULIDMixin


class User(Base, ULIDMixin):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("center_id", "phone_number"),)

    center_id: Mapped[str] = mapped_column(String(26), ForeignKey("centers.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    phone_number: Mapped[str] = mapped_column(String(20), index=True)
    address: Mapped[str] = mapped_column(String(500), default="")
    image_url: Mapped[str] = mapped_column(String(1000), default="")
    role: Mapped[str] = mapped_column(String(20), default="member")  # member | staff
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    center = relationship("Center", back_populates="users", lazy="joined")


class UserSession(Base, ULIDMixin):
    __tablename__ = "user_sessions"

    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class PhoneChallenge(Base, ULIDMixin):
    __tablename__ = "phone_challenges"

    phone_number: Mapped[str] = mapped_column(String(20), index=True)
    purpose: Mapped[str] = mapped_column(String(10))  # login | signup
    center_id: Mapped[str | None] = mapped_column(String(26), nullable=True, default=None)
    code_hash: Mapped[str] = mapped_column(String(64))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    consumed: Mapped[bool] = mapped_column(Boolean, default=False)
