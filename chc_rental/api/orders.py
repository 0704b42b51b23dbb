"""Orders API: manual booking form, order list and order detail."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.config import get_settings
from chc_rental.db import crud
from chc_rental.db.engine import get_db
from chc_rental.dependencies import require_auth
from chc_rental.schemas import BookingResponse, OrderCreate, OrderRead, OrderSummary
from chc_rental.services import booking
from chc_rental.services.auth import AuthContext

router = APIRouter(prefix="/api/orders", tags=["orders"])

_ERROR_STATUS = {
    "auth_required": 401,
    "equipment_not_found": 404,
    "equipment_unavailable": 409,
    "invalid_rate": 422,
    "invalid_duration": 400,
    "persistence_error": 503,
}


@router.post("", status_code=201, response_model=BookingResponse)
async def create_order(
    body: OrderCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Submit the rental summary form. The rate is never taken from the client."""
    result = await booking.place_booking(db, auth, body.equipment_id, body.booking_hrs, "app")
    if not result.success:
        return JSONResponse(
            status_code=_ERROR_STATUS.get(result.code, 400),
            content={"detail": result.message, "code": result.code},
        )
    r = result.receipt
    return BookingResponse(
        success=True,
        message=result.message,
        order_id=r.order_id,
        equipment_name=r.equipment_name,
        booking_hrs=r.booking_hrs,
        estimated_cost=r.estimated_cost,
        delivery_otp=r.delivery_otp,
        booking_mode=r.booking_mode,
    )


@router.get("/hour-options")
async def hour_options(auth: AuthContext = Depends(require_auth)):
    cfg = get_settings().booking
    return {"hours": list(range(cfg.min_booking_hours, cfg.max_booking_hours + 1)), "default": 2}


@router.get("", response_model=list[OrderSummary])
async def list_orders(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_orders_for_user(db, auth.center_id, auth.user_id)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await crud.get_order(db, auth.center_id, order_id)
    if not order or order.user_id != auth.user_id:
        raise HTTPException(404, "Order not found.")
    return order
