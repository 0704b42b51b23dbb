"""Pydantic request/response schemas."""

from chc_rental.schemas.auth import (
    AuthResponse, CenterRead, LoginRequest, PhoneCodeRequest,
    SessionUser, SignupRequest,
)
from chc_rental.schemas.equipment import (
    EquipmentAvailabilityUpdate, EquipmentCreate, EquipmentRead, QuoteRead,
)
from chc_rental.schemas.order import (
    BookingResponse, OrderCreate, OrderRead, OrderStatusUpdate, OrderSummary,
)
from chc_rental.schemas.assistant import AssistantMessage, AssistantReplyRead, AssistantWelcome
from chc_rental.schemas.ws_messages import WSMessage

__all__ = [
    "AuthResponse", "CenterRead", "LoginRequest", "PhoneCodeRequest",
    "SessionUser", "SignupRequest",
    "EquipmentAvailabilityUpdate", "EquipmentCreate", "EquipmentRead", "QuoteRead",
    "BookingResponse", "OrderCreate", "OrderRead", "OrderStatusUpdate", "OrderSummary",
    "AssistantMessage", "AssistantReplyRead", "AssistantWelcome",
    "WSMessage",
]
