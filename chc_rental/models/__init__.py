"""SQLAlchemy ORM models."""

from chc_rental.models.base import Base
from chc_rental.models.center import Center
from chc_rental.models.equipment import Equipment
from chc_rental.models.user import User, UserSession, PhoneChallenge
from chc_rental.models.order import Order, ORDER_STATUSES, BOOKING_MODES

__all__ = [
    "Base", "Center", "Equipment", "User", "UserSession", "PhoneChallenge",
    "Order", "ORDER_STATUSES", "BOOKING_MODES",
]
