"""Live order stream: snapshots and status notifications over a WebSocket."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db.engine import get_db
from chc_rental.schemas import OrderSummary, WSMessage
from chc_rental.services.auth import validate_session
from chc_rental.services.order_stream import (
    Notification, OrderStreamTracker, OrderView, order_feed,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


def _snapshot_message(orders: list[OrderView]) -> dict:
    return WSMessage(event="orders_snapshot", data={
        "orders": [
            OrderSummary.model_validate(o, from_attributes=True).model_dump(mode="json")
            for o in orders
        ],
    }).model_dump()


def _notification_message(note: Notification) -> dict:
    return WSMessage(event="order_notification", data={
        "order_id": note.order_id,
        "status": note.status,
        "type": note.severity,
        "message": note.message,
    }).model_dump()


def _error_message(text: str) -> dict:
    return WSMessage(event="error", data={"message": text}).model_dump()


async def _pump(websocket: WebSocket, queue: asyncio.Queue):
    while True:
        message = await queue.get()
        await websocket.send_json(message)


@router.websocket("/api/ws/orders")
async def orders_stream(
    websocket: WebSocket,
    token: str = Query(default=""),
    db: AsyncSession = Depends(get_db),
):
    user = await validate_session(token, db) if token else None
    if not user:
        await websocket.close(code=4001, reason="Unauthorized")
        return

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()
    tracker = OrderStreamTracker(
        order_feed,
        on_notification=lambda note: queue.put_nowait(_notification_message(note)),
        on_change=lambda orders: queue.put_nowait(_snapshot_message(orders)),
        on_error=lambda text: queue.put_nowait(_error_message(text)),
    )
    tracker.watch(user.center_id, user.id)
    sender = asyncio.create_task(_pump(websocket, queue))
    try:
        await order_feed.publish(user.center_id, user.id, db)
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Order stream closed for {user.id}")
    finally:
        tracker.close()
        sender.cancel()
