# backend/chefhome/main.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .core.config import settings
from .core.constants import BRAND_NAME
from .database import Base, engine
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    admin_disputes as admin_disputes_v1,
    bookings as bookings_v1,
    chef_home as chef_home_v1,
    chefs as chefs_v1,
    notifications as notifications_v1,
    payments as payments_v1,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_TITLE = f"{BRAND_NAME} Reservation API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if settings.database_url.startswith("sqlite"):
        # Local development store; other databases are migrated out of band
        Base.metadata.create_all(bind=engine)
    if not settings.redis_url:
        logger.warning("REDIS_URL not set; reservation locks are process-local")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if not settings.is_production else [],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# /chef-home/appointments/* is declared before /chef-home/{location_id} inside the router
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(chef_home_v1.router, prefix="/chef-home")
api_v1.include_router(chefs_v1.router, prefix="/chefs")
api_v1.include_router(admin_disputes_v1.router, prefix="/admin/disputes")
api_v1.include_router(notifications_v1.router, prefix="/notifications")

app.include_router(api_v1)


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: datetime


@app.get("/health", response_model=HealthResponse, include_in_schema=False)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=API_TITLE,
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=prometheus_metrics.get_metrics(), media_type=prometheus_metrics.content_type)
