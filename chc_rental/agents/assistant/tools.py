"""Booking Assistant tools: function declaration and deterministic intent checks."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from chc_rental.agents.llm_provider import FunctionCall
from chc_rental.agents.assistant.prompts import (
    EQUIPMENT_LINE, INVALID_HOURS_REPLY, MISSING_EQUIPMENT_REPLY, NOT_FOUND_REPLY, SYSTEM_PROMPT,
)
from chc_rental.services.booking import format_amount
from chc_rental.services.catalog import CatalogSnapshot

CREATE_ORDER_FUNCTION = {
    "name": "createOrder",
    "description": (
        "Creates a new equipment rental order when user explicitly requests to book "
        "or rent specific equipment for a specific duration."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "equipmentName": {
                "type": "string",
                "description": (
                    "The name of the equipment to be booked (e.g., 'Tractor with Rotavator', "
                    "'Seeder'). Must match one of the equipment names from the available list."
                ),
            },
            "bookingHrs": {
                "type": "number",
                "description": "The number of hours the user wants to rent the equipment. Must be greater than 0.",
            },
        },
        "required": ["equipmentName", "bookingHrs"],
    },
}


@dataclass(frozen=True)
class Book:
    equipment_id: str
    equipment_name: str
    hours: int


@dataclass(frozen=True)
class Respond:
    text: str


Intent = Book | Respond


def build_system_prompt(snapshot: CatalogSnapshot, currency: str) -> str:
    lines = [
        EQUIPMENT_LINE.format(index=i, name=item.name, currency=currency, rent=format_amount(item.rent))
        for i, item in enumerate(snapshot.items, start=1)
    ]
    return SYSTEM_PROMPT.format(equipment_list="\n".join(lines))


def parse_hours(raw, min_hours: int, max_hours: int) -> int | None:
    """Whole number of hours within bounds, else None. Accepts 3, 3.0 and "3"."""
    if isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except ArithmeticError:
        return None
    if not value.is_finite() or value != value.to_integral_value():
        return None
    hours = int(value)
    if hours < min_hours or hours > max_hours:
        return None
    return hours


def intent_from_call(call: FunctionCall, snapshot: CatalogSnapshot,
                     min_hours: int, max_hours: int) -> Intent | None:
    """Validate a createOrder call against the snapshot; None for unknown functions."""
    if call.name != CREATE_ORDER_FUNCTION["name"]:
        return None
    raw_name = call.args.get("equipmentName")
    name = "" if raw_name is None else str(raw_name).strip()
    if not name:
        return Respond(MISSING_EQUIPMENT_REPLY)
    item = snapshot.find_by_name(name)
    if item is None:
        return Respond(NOT_FOUND_REPLY.format(name=name))
    hours = parse_hours(call.args.get("bookingHrs"), min_hours, max_hours)
    if hours is None:
        return Respond(INVALID_HOURS_REPLY.format(name=item.name, min_hours=min_hours, max_hours=max_hours))
    return Book(equipment_id=item.id, equipment_name=item.name, hours=hours)
