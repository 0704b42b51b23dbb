from __future__ import annotations
from typing import Any
from pydantic import BaseModel


class WSMessage(BaseModel):
    event: str  # orders_snapshot | order_notification | error
    data: dict[str, Any] = {}
