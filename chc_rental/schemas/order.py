from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class OrderCreate(BaseModel):
    equipment_id: str
    booking_hrs: int


class OrderSummary(BaseModel):
    id: str
    equipment_name: str
    booking_hrs: int
    estimated_cost: Decimal
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class OrderRead(OrderSummary):
    center_id: str
    equipment_id: str
    equipment_rent: Decimal
    delivery_otp: str
    booking_mode: str  # app | voice-bot
    user_id: str
    user_name: str
    allocated_start_time: datetime | None = None
    allocated_end_time: datetime | None = None
    updated_at: datetime


class BookingResponse(BaseModel):
    success: bool
    message: str
    order_id: str
    equipment_name: str
    booking_hrs: int
    estimated_cost: Decimal
    delivery_otp: str
    booking_mode: str


class OrderStatusUpdate(BaseModel):
    status: str  # Allocated | Delivered | Returned
    allocated_start_time: datetime | None = None
    allocated_end_time: datetime | None = None
