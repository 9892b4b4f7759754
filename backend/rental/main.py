"""
Car Rental Reservations API - Main Application Entry Point

Booking lifecycle and vehicle-availability service:
- Half-open date ranges, per-vehicle availability index
- Per-vehicle serialized writes, so a car is never double-booked
- Explicit booking status state machine
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rental.api.errors import register_error_handlers
from rental.api.middleware import RequestLoggingMiddleware
from rental.api.router import api_router
from rental.core.config import get_settings
from rental.core.logging import get_logger, setup_logging
from rental.core.metrics import metrics_endpoint
from rental.services.cache_service import close_redis, get_cache_stats, get_redis
from rental.services.coordinator_factory import get_coordinator
from rental.services.reservation_coordinator import ReservationCoordinator

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        storage=settings.STORAGE_BACKEND,
    )

    # Rebuild held ranges from persisted pending/active bookings
    await get_coordinator().warm_up()

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Availability probes served without cache")

    yield

    await close_redis()
    if settings.STORAGE_BACKEND == "sql":
        from rental.db.session import close_db
        await close_db()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Car rental booking lifecycle and vehicle availability API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check(coordinator: ReservationCoordinator = Depends(get_coordinator)):
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "storage": settings.STORAGE_BACKEND,
        "held_ranges": len(coordinator.index),
        "cache": await get_cache_stats(),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
