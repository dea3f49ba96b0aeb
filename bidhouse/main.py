"""
FastAPI application entry point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from bidhouse.api import admin, auctions, users
from bidhouse.core.config import get_settings
from bidhouse.core.logging_config import setup_logging
from bidhouse.core.metrics import CONTENT_TYPE_LATEST, get_metrics
from bidhouse.infrastructure.database import (
    check_database_health,
    get_engine,
    get_session_factory,
    init_db,
)
from bidhouse.middleware.tracing import TracingMiddleware
from bidhouse.services import AuctionSweeper, MarketplaceError, ValidationError

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not check_database_health():
        logger.error("Database connection failed")
        raise RuntimeError("Database is unreachable")
    init_db()

    sweeper = None
    if settings.SWEEP_ENABLED:
        sweeper = AuctionSweeper(get_session_factory())
        await sweeper.start()

    yield

    logger.info("Shutting down...")
    if sweeper:
        await sweeper.stop()
    get_engine().dispose()
    logger.info("Cleanup complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Online auction marketplace: listings, bidding and automatic closing",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    """Render service errors as {"error", "message", "detail"}"""
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "detail": exc.detail,
        },
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Render malformed request bodies, paths and queries as a ValidationError"""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.info(
        f"Request validation failed: {request.method} {request.url.path}",
        extra={"reason": ValidationError.code},
    )
    return await marketplace_error_handler(
        request,
        ValidationError(
            "Request is malformed",
            {"field": errors[0]["field"] if errors else None, "errors": errors},
        ),
    )


app.add_middleware(TracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/metrics", tags=["Monitoring"])
def metrics():
    """Prometheus metrics endpoint"""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)


@app.get("/", tags=["Root"])
def root():
    return {
        "message": f"{settings.APP_NAME} v{settings.APP_VERSION}",
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(auctions.router)
app.include_router(users.router)
app.include_router(admin.router)
