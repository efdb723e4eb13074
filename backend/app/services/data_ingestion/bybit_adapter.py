"""
Bybit Kline Adapter

Public v5 market endpoint for USDT linear perpetuals. No API key needed.
"""

from typing import Any

from app.schemas.market import Candle, ProviderName
from app.services.data_ingestion.interface import KlineProvider
from app.services.data_ingestion.normalizer import normalize_rows

BYBIT_KLINE_URL = "https://api.bybit.com/v5/market/kline"

# Bybit intervals: 1,3,5,15,30,60,120,240,360,720,D,W,M
INTERVAL_MAP = {
    "1m": "1",
    "3m": "3",
    "5m": "5",
    "15m": "15",
    "30m": "30",
    "1h": "60",
    "2h": "120",
    "4h": "240",
    "6h": "360",
    "12h": "720",
    "1d": "D",
}


class BybitProvider(KlineProvider):
    """Bybit linear kline history."""

    name = ProviderName.BYBIT
    interval_map = INTERVAL_MAP

    def build_request(self, symbol: str, interval_code: str, limit: int) -> tuple[str, dict]:
        return BYBIT_KLINE_URL, {
            "category": "linear",
            "symbol": symbol,
            "interval": interval_code,
            "limit": limit,
        }

    def parse_response(self, payload: Any) -> list[Candle]:
        # {"result": {"list": [[start, open, high, low, close, volume, turnover], ...]}}
        # newest first
        result = payload.get("result") if isinstance(payload, dict) else None
        rows = result.get("list") if isinstance(result, dict) else None
        if not isinstance(rows, list):
            raise self.bad_shape()
        return normalize_rows(rows)
