"""Back-office API (staff only): catalog maintenance and order status changes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db import crud
from chc_rental.db.engine import get_db
from chc_rental.dependencies import get_catalog_cache, require_role
from chc_rental.models import ORDER_STATUSES
from chc_rental.schemas import (
    EquipmentAvailabilityUpdate, EquipmentCreate, EquipmentRead, OrderRead, OrderStatusUpdate,
)
from chc_rental.services.auth import AuthContext
from chc_rental.services.backoffice import advance_order_status
from chc_rental.services.catalog import CatalogCache
from chc_rental.services.errors import InvalidTransition

router = APIRouter(prefix="/api/backoffice", tags=["backoffice"])


@router.post("/equipment", response_model=EquipmentRead, status_code=201)
async def add_equipment(
    body: EquipmentCreate,
    auth: AuthContext = Depends(require_role("staff")),
    db: AsyncSession = Depends(get_db),
    cache: CatalogCache = Depends(get_catalog_cache),
):
    if body.rent < 0:
        raise HTTPException(400, "rent must not be negative")
    eq = await crud.create_equipment(
        db, auth.center_id, body.name, body.rent,
        available=body.available, description=body.description,
        location_details=body.location_details, images=body.images,
    )
    cache.invalidate(auth.center_id)
    return eq


@router.post("/equipment/{equipment_id}/availability", response_model=EquipmentRead)
async def set_availability(
    equipment_id: str,
    body: EquipmentAvailabilityUpdate,
    auth: AuthContext = Depends(require_role("staff")),
    db: AsyncSession = Depends(get_db),
    cache: CatalogCache = Depends(get_catalog_cache),
):
    """Mark equipment rented out or back in stock; only available equipment can be booked."""
    eq = await crud.get_equipment(db, auth.center_id, equipment_id)
    if not eq:
        raise HTTPException(404, "Equipment not found.")
    eq = await crud.set_equipment_availability(db, eq, body.available)
    cache.invalidate(auth.center_id)
    return eq


@router.post("/orders/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    auth: AuthContext = Depends(require_role("staff")),
    db: AsyncSession = Depends(get_db),
):
    if body.status not in ORDER_STATUSES:
        raise HTTPException(400, f"status must be one of {', '.join(ORDER_STATUSES)}")
    order = await crud.get_order(db, auth.center_id, order_id)
    if not order:
        raise HTTPException(404, "Order not found.")
    try:
        return await advance_order_status(
            db, order, body.status,
            allocated_start_time=body.allocated_start_time,
            allocated_end_time=body.allocated_end_time,
        )
    except InvalidTransition as e:
        raise HTTPException(409, str(e))
