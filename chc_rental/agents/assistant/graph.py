"""Booking Assistant Agent: LangGraph StateGraph implementation.

Graph: resolve → (book | respond) → END
The model only proposes; equipment names are matched against the caller's
catalog snapshot and the booking itself goes through the booking engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, TypedDict

from langgraph.graph import StateGraph, END
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.agents.llm_provider import LLMProvider
from chc_rental.agents.assistant.prompts import (
    CONNECTION_ERROR_REPLY, LOADING_REPLY, UNAVAILABLE_REPLY, UNCLEAR_REPLY,
    WELCOME_MESSAGE,
)
from chc_rental.agents.assistant.tools import (
    CREATE_ORDER_FUNCTION, Book, Intent, Respond, build_system_prompt, intent_from_call,
)
from chc_rental.config import get_settings
from chc_rental.services import booking
from chc_rental.services.catalog import CatalogSnapshot
from chc_rental.services.errors import ModelTransportError

logger = logging.getLogger(__name__)


class AssistantState(TypedDict):
    utterance: str
    snapshot: CatalogSnapshot
    llm: LLMProvider | None
    db: AsyncSession
    requester: Any
    on_booked: Callable[[str], Any] | None
    intent: Intent | None
    reply: str
    booked: bool
    order_id: str


@dataclass
class AssistantReply:
    text: str
    booked: bool = False
    order_id: str = ""
    navigate_to: str = ""


# ── Intent resolution ─────────────────────────────────────

async def resolve_intent(utterance: str, snapshot: CatalogSnapshot, llm: LLMProvider | None) -> Intent:
    """Turn one utterance into Book or Respond. Never raises."""
    if snapshot.is_empty:
        return Respond(LOADING_REPLY)
    if llm is None:
        return Respond(UNAVAILABLE_REPLY)

    cfg = get_settings().booking
    system = build_system_prompt(snapshot, cfg.currency_symbol)
    try:
        reply = await llm.call_with_tools(system, utterance, [CREATE_ORDER_FUNCTION])
    except ModelTransportError as e:
        logger.error(f"Assistant model call failed: {e}")
        return Respond(CONNECTION_ERROR_REPLY.format(error=e))
    except Exception as e:
        logger.exception("Unexpected assistant model failure")
        return Respond(CONNECTION_ERROR_REPLY.format(error=e))

    if reply.function_call is not None:
        intent = intent_from_call(
            reply.function_call, snapshot, cfg.min_booking_hours, cfg.max_booking_hours,
        )
        if intent is not None:
            return intent
        logger.warning(f"Model called unknown function {reply.function_call.name!r}")
        return Respond(UNCLEAR_REPLY)
    if reply.text:
        return Respond(reply.text)
    return Respond(UNCLEAR_REPLY)


def welcome_message(user_name: str, snapshot: CatalogSnapshot) -> str:
    first = snapshot.items[0].name if snapshot.items else "equipment"
    return WELCOME_MESSAGE.format(user_name=user_name, count=len(snapshot), first_name=first)


# ── Node functions ────────────────────────────────────────

async def resolve_node(state: AssistantState) -> dict:
    intent = await resolve_intent(state["utterance"], state["snapshot"], state["llm"])
    return {"intent": intent}


def route_intent(state: AssistantState) -> Literal["book", "respond"]:
    """Conditional edge: only a validated Book intent reaches the booking engine."""
    if isinstance(state["intent"], Book):
        return "book"
    return "respond"


async def book_node(state: AssistantState) -> dict:
    intent: Book = state["intent"]
    result = await booking.place_booking(
        state["db"], state["requester"], intent.equipment_id, intent.hours, "voice-bot",
    )
    if not result.success:
        return {"reply": result.message, "booked": False}

    order_id = result.receipt.order_id
    if state["on_booked"] is not None:
        try:
            state["on_booked"](order_id)
        except Exception:
            logger.exception("on_booked callback failed")
    return {"reply": result.message, "booked": True, "order_id": order_id}


def respond_node(state: AssistantState) -> dict:
    return {"reply": state["intent"].text, "booked": False}


# ── Build graph ───────────────────────────────────────────

def build_assistant_graph() -> StateGraph:
    graph = StateGraph(AssistantState)

    graph.add_node("resolve", resolve_node)
    graph.add_node("book", book_node)
    graph.add_node("respond", respond_node)

    graph.set_entry_point("resolve")
    graph.add_conditional_edges("resolve", route_intent, {
        "book": "book",
        "respond": "respond",
    })
    graph.add_edge("book", END)
    graph.add_edge("respond", END)

    return graph.compile()


# ── Public API ────────────────────────────────────────────

async def handle_message(
    db: AsyncSession,
    requester,
    utterance: str,
    snapshot: CatalogSnapshot,
    llm: LLMProvider | None,
    on_booked: Callable[[str], Any] | None = None,
) -> AssistantReply:
    """Run one chat turn: resolve the utterance and, if it is a booking, place it."""
    initial_state: AssistantState = {
        "utterance": utterance.strip(),
        "snapshot": snapshot,
        "llm": llm,
        "db": db,
        "requester": requester,
        "on_booked": on_booked,
        "intent": None,
        "reply": "",
        "booked": False,
        "order_id": "",
    }

    graph = build_assistant_graph()
    result = await graph.ainvoke(initial_state)

    return AssistantReply(
        text=result["reply"],
        booked=result["booked"],
        order_id=result["order_id"],
        navigate_to="orders" if result["booked"] else "",
    )
