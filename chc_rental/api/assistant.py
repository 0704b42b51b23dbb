"""Booking Assistant API: one chat turn per request."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.agents.assistant.graph import handle_message, welcome_message
from chc_rental.agents.llm_provider import LLMProvider
from chc_rental.db.engine import get_db
from chc_rental.dependencies import get_catalog_cache, get_llm, require_auth
from chc_rental.schemas import AssistantMessage, AssistantReplyRead, AssistantWelcome
from chc_rental.services.auth import AuthContext
from chc_rental.services.catalog import CatalogCache

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


@router.get("/welcome", response_model=AssistantWelcome)
async def welcome(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    cache: CatalogCache = Depends(get_catalog_cache),
):
    snapshot = await cache.get(db, auth.center_id, refresh=True)
    return AssistantWelcome(
        message=welcome_message(auth.display_name, snapshot),
        equipment_count=len(snapshot),
    )


@router.post("/messages", response_model=AssistantReplyRead)
async def send_message(
    body: AssistantMessage,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    cache: CatalogCache = Depends(get_catalog_cache),
    llm: LLMProvider | None = Depends(get_llm),
):
    if not body.text.strip():
        raise HTTPException(400, "Please type a message.")
    snapshot = await cache.get(db, auth.center_id)
    reply = await handle_message(db, auth, body.text, snapshot, llm)
    return AssistantReplyRead(
        reply=reply.text,
        booked=reply.booked,
        order_id=reply.order_id,
        navigate_to=reply.navigate_to,
    )
