"""
Data Ingestion Service

CONTRACT:
    Input:  KlineRequest
    Output: list[Candle]

RESPONSIBILITIES:
    - Fetch kline history from Bybit, OKX or Binance (via relay)
    - Normalize every provider's rows to [openTimeMs, open, high, low, close]
    - Fall back to the next provider when one fails

NO SIGNAL LOGIC - Pure data fetching and transformation.
"""

from app.services.data_ingestion.interface import KlineProvider
from app.services.data_ingestion.service import (
    KlineService,
    build_provider_order,
    close_kline_service,
    get_kline_service,
)

__all__ = [
    "KlineProvider",
    "KlineService",
    "build_provider_order",
    "close_kline_service",
    "get_kline_service",
]
