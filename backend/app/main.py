"""
AIVARA Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.schemas.signals import EngineSnapshot
from app.api.v1 import router as api_v1_router
from app.api.v1.endpoints import market, signals, stream
from app.services.engine import get_engine_scheduler
from app.services.stream import get_state_publisher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Symbols: {settings.symbol_list} @ {settings.timeframe}")
    logger.info(f"Providers: {settings.provider_list} (relay: {'yes' if settings.proxy_base else 'no'})")

    from app.services.engine import start_engine_scheduler, stop_engine_scheduler
    from app.services.data_ingestion import close_kline_service

    if settings.enable_engine:
        await start_engine_scheduler()
    else:
        logger.info("Engine disabled (enable_engine=false)")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await stop_engine_scheduler()
    await close_kline_service()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    AIVARA Realtime Signals API

    ## Architecture
    - **Data Ingestion**: Kline history from Bybit, OKX, Binance (relay), with fallback
    - **Indicators**: EMA, RSI, ATR (NumPy)
    - **Signals**: Rule-based LONG / SHORT / FLAT with entry zone, stop, targets, leverage
    - **Streaming**: Latest snapshot pushed over SSE on every engine tick

    No API keys required.
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET"],
    allow_headers=["Content-Type"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    snapshot = get_state_publisher().snapshot
    scheduler = get_engine_scheduler()
    return {
        "ok": True,
        "symbols": settings.symbol_list,
        "timeframe": settings.timeframe,
        "updated_at": snapshot.updated_at,
        "count": snapshot.count,
        "providers": settings.provider_list,
        "version": snapshot.version,
        "engine": {
            "state": scheduler.state.value,
            "tick": scheduler.tick,
        },
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "AIVARA Backend API",
        "docs": "/docs",
        "health": "/health",
    }


# Unversioned paths used by existing clients
app.add_api_route("/api/health", health_check, methods=["GET"], include_in_schema=False)
app.add_api_route(
    "/api/signals", signals.get_signals, methods=["GET"], response_model=EngineSnapshot, include_in_schema=False
)
app.add_api_route("/api/klines", market.get_klines, methods=["GET"], include_in_schema=False)
app.add_api_route("/api/stream", stream.stream_signals, methods=["GET"], include_in_schema=False)
