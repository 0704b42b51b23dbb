from __future__ import annotations
from pydantic import BaseModel


class AssistantMessage(BaseModel):
    text: str


class AssistantReplyRead(BaseModel):
    reply: str
    booked: bool = False
    order_id: str = ""
    navigate_to: str = ""  # "" | orders


class AssistantWelcome(BaseModel):
    message: str
    equipment_count: int
