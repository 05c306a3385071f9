# backend/pawledger/main.py
"""
FastAPI application for the PawLedger booking and ledger engine.

Customer routes live under ``/api/v1``; staff routes under ``/api/v1/admin``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from .core.config import settings
from .database import SessionLocal, engine
from .errors import register_error_handlers
from .init_db import init_db, seed_reference_data
from .routes import health, prometheus
from .routes.v1 import (
    bookings as bookings_v1,
    checkout as checkout_v1,
    grooming as grooming_v1,
    wallet as wallet_v1,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_TITLE = "PawLedger API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"Starting {API_TITLE} ({settings.environment})")
    if settings.environment in ("local", "test"):
        init_db(engine)
        db = SessionLocal()
        try:
            seed_reference_data(db)
        finally:
            db.close()
    yield
    logger.info(f"Shutting down {API_TITLE}")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(checkout_v1.router, prefix="/checkout")
api_v1.include_router(wallet_v1.router, prefix="/wallet")
api_v1.include_router(grooming_v1.router, prefix="/grooming")

# Staff
api_v1.include_router(bookings_v1.admin_router, prefix="/admin/bookings")
api_v1.include_router(checkout_v1.admin_router, prefix="/admin/checkout")
api_v1.include_router(wallet_v1.admin_router, prefix="/admin/wallet")
api_v1.include_router(grooming_v1.admin_router, prefix="/admin/grooming")

app.include_router(api_v1)
app.include_router(health.router)
app.include_router(prometheus.router)
