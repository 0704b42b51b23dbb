from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.db import crud
from chc_rental.db.engine import get_db
from chc_rental.dependencies import require_auth
from chc_rental.schemas import CenterRead, EquipmentRead, QuoteRead
from chc_rental.services import booking, catalog
from chc_rental.services.auth import AuthContext
from chc_rental.services.errors import BookingError, EquipmentNotFound, EquipmentUnavailable

router = APIRouter(prefix="/api", tags=["equipment"])


@router.get("/centers", response_model=list[CenterRead])
async def list_centers(db: AsyncSession = Depends(get_db)):
    """Public center directory for the signup picker."""
    return await crud.list_centers(db)


@router.get("/equipment", response_model=list[EquipmentRead])
async def list_equipment(
    q: str = Query(default=""),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.list_equipment(db, auth.center_id, q)


@router.get("/equipment/{equipment_id}", response_model=EquipmentRead)
async def get_equipment(
    equipment_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    eq = await catalog.get_equipment(db, auth.center_id, equipment_id)
    if not eq:
        raise HTTPException(404, "Equipment not found.")
    return eq


@router.get("/equipment/{equipment_id}/quote", response_model=QuoteRead)
async def quote_equipment(
    equipment_id: str,
    hours: int = Query(default=2),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Estimated cost for the rental summary screen, priced from the catalog."""
    try:
        q = await booking.quote(db, auth.center_id, equipment_id, hours)
    except EquipmentNotFound as e:
        raise HTTPException(404, e.message)
    except EquipmentUnavailable as e:
        raise HTTPException(409, e.message)
    except BookingError as e:
        raise HTTPException(400, e.message)
    return QuoteRead(
        equipment_id=q.equipment_id,
        equipment_name=q.equipment_name,
        equipment_rent=q.equipment_rent,
        booking_hrs=q.booking_hrs,
        estimated_cost=q.estimated_cost,
    )
