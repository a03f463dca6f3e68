"""
AutoCare Booking API - Main Application Entry Point

Vehicle service booking engine:
- Capacity-safe slot reservation (single guarded UPDATE, no over-booking)
- Booking status state machine with an append-only audit trail
- Best-effort SMS / email notifications after each committed transition
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autocare.api.middleware import RequestLoggingMiddleware
from autocare.api.router import api_router
from autocare.core.config import get_settings
from autocare.core.exceptions import register_exception_handlers
from autocare.core.logging import get_logger, setup_logging
from autocare.core.metrics import metrics_endpoint
from autocare.db.session import create_engine, create_session_factory
from autocare.services.booking_lifecycle import BookingLifecycle
from autocare.services.cache_service import close_redis, get_cache_stats, get_redis
from autocare.services.notification_dispatcher import NotificationDispatcher
from autocare.services.slot_allocator import SlotAllocator

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: build the database engine and booking components, tear them down on exit."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    engine = create_engine(settings.DATABASE_URL, settings, echo=settings.DEBUG)
    session_factory = create_session_factory(engine)
    dispatcher = NotificationDispatcher.from_settings(settings)
    allocator = SlotAllocator(session_factory, settings)
    lifecycle = BookingLifecycle(session_factory, allocator, dispatcher, settings)

    app.state.session_factory = session_factory
    app.state.dispatcher = dispatcher
    app.state.allocator = allocator
    app.state.lifecycle = lifecycle

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without slot cache")

    yield

    # Let queued notifications finish before their HTTP client goes away
    await lifecycle.drain()
    await dispatcher.aclose()
    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Vehicle service booking API with capacity-safe reservations and audited status changes",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey", "X-Request-ID"],
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
