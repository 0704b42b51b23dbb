"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from chc_rental.api.auth import router as auth_router
from chc_rental.api.equipment import router as equipment_router
from chc_rental.api.orders import router as orders_router
from chc_rental.api.assistant import router as assistant_router
from chc_rental.api.backoffice import router as backoffice_router
from chc_rental.api.websocket import router as websocket_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(equipment_router)
api_router.include_router(orders_router)
api_router.include_router(assistant_router)
api_router.include_router(backoffice_router)
api_router.include_router(websocket_router)
