"""
CONTRACT 1: Data Ingestion Layer

Input: KlineRequest
Output: list[Candle]

Raw history is fetched from one of several interchangeable exchanges
and normalized into a single candle format.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class ProviderName(str, Enum):
    BYBIT = "BYBIT"
    OKX = "OKX"
    BINANCE = "BINANCE"  # Reached through PROXY_BASE only


# =============================================================================
# INPUT: KlineRequest
# =============================================================================


class KlineRequest(BaseModel):
    """
    Request for candle history.
    Sent by: Engine Scheduler / klines endpoint
    Received by: KlineService
    """

    symbol: str = Field(..., min_length=1, description="Trading pair, e.g. BTCUSDT")
    interval: str = Field(default="1m", description="Candle interval, e.g. 1m, 1h, 1d")
    limit: int = Field(default=200, ge=1, le=1500, description="Number of candles")
    provider: Optional[str] = Field(
        default=None,
        description="Provider to try first (BYBIT, OKX, BINANCE)",
    )


# =============================================================================
# OUTPUT: Candle
# =============================================================================


class Candle(BaseModel):
    """Single normalized candlestick."""

    open_time_ms: int = Field(..., ge=0)
    open: float
    high: float
    low: float
    close: float

    def to_wire(self) -> list:
        """Canonical 5-tuple: [openTimeMs, open, high, low, close]."""
        return [self.open_time_ms, self.open, self.high, self.low, self.close]

    class Config:
        json_schema_extra = {
            "example": {
                "open_time_ms": 1717430400000,
                "open": 67890.1,
                "high": 67950.0,
                "low": 67850.5,
                "close": 67920.3,
            }
        }
