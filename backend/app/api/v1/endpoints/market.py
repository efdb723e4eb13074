"""
Market Data API Endpoints

Raw kline history with provider fallback.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.services.base import AllProvidersFailed
from app.services.data_ingestion import get_kline_service
from app.services.data_ingestion.normalizer import to_wire

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_KLINES_LIMIT = 500


def parse_limit(raw: Optional[str]) -> int:
    """Positive integer limit, or the default for missing, zero, negative or non-numeric input."""
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_KLINES_LIMIT
    return value if value > 0 else DEFAULT_KLINES_LIMIT


@router.get("/klines")
async def get_klines(
    symbol: str = Query(default="BTCUSDT", description="Trading pair"),
    interval: Optional[str] = Query(default=None, description="Candle interval (defaults to TIMEFRAME)"),
    limit: Optional[str] = Query(default=None, description="Number of candles (capped, default 500)"),
    provider: Optional[str] = Query(default=None, description="Provider to try first: BYBIT, OKX, BINANCE"),
):
    """
    Get normalized kline history.

    Returns a list of [openTimeMs, open, high, low, close], oldest first.
    """
    service = get_kline_service()
    try:
        candles = await service.fetch(
            symbol.upper(),
            interval or settings.timeframe,
            min(settings.klines_max_limit, parse_limit(limit)),
            provider,
        )
    except AllProvidersFailed as e:
        logger.error(f"Klines failed for {symbol}: {e.message}")
        return JSONResponse(
            status_code=502,
            content={"error": "klines_failed", "detail": e.message},
        )

    return to_wire(candles)
