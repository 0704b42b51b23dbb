"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chc_rental.db.engine import create_all, engine
from chc_rental.api.router import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all()
    logger.info("Database ready")
    yield
    await engine.dispose()


app = FastAPI(
    title="CHC Rental",
    description="Equipment rental for Custom Hiring Centres: catalog, bookings, live order tracking and a booking assistant.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/healthz")
async def healthz():
    return {"ok": True}
