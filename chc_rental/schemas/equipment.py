from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class EquipmentCreate(BaseModel):
    name: str
    rent: Decimal
    available: bool = True
    description: str = ""
    location_details: str = ""
    images: list[str] = []


class EquipmentAvailabilityUpdate(BaseModel):
    available: bool


class EquipmentRead(BaseModel):
    id: str
    center_id: str
    name: str
    rent: Decimal | None = None
    available: bool = True
    description: str = ""
    location_details: str = ""
    images: list[str] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class QuoteRead(BaseModel):
    equipment_id: str
    equipment_name: str
    equipment_rent: Decimal
    booking_hrs: int
    estimated_cost: Decimal
