"""
OKX Kline Adapter

Public v5 candles endpoint for USDT-margined swaps.
"""

from typing import Any

from app.schemas.market import Candle, ProviderName
from app.services.data_ingestion.interface import KlineProvider
from app.services.data_ingestion.normalizer import normalize_rows

OKX_CANDLES_URL = "https://www.okx.com/api/v5/market/candles"

# OKX bars use upper-case hour/day units
INTERVAL_MAP = {
    "1m": "1m",
    "3m": "3m",
    "5m": "5m",
    "15m": "15m",
    "30m": "30m",
    "1h": "1H",
    "2h": "2H",
    "4h": "4H",
    "6h": "6H",
    "12h": "12H",
    "1d": "1D",
}


def to_okx_inst_id(symbol: str) -> str:
    """BTCUSDT -> BTC-USDT-SWAP (assumes USDT perpetuals)."""
    symbol = symbol.upper().strip()
    base = symbol[:-4] if symbol.endswith("USDT") else symbol
    return f"{base}-USDT-SWAP"


class OkxProvider(KlineProvider):
    """OKX swap candle history."""

    name = ProviderName.OKX
    interval_map = INTERVAL_MAP

    def build_request(self, symbol: str, interval_code: str, limit: int) -> tuple[str, dict]:
        return OKX_CANDLES_URL, {
            "instId": to_okx_inst_id(symbol),
            "bar": interval_code,
            "limit": limit,
        }

    def parse_response(self, payload: Any) -> list[Candle]:
        # {"data": [[ts, o, h, l, c, vol, volCcy, volCcyQuote, confirm], ...]}, newest first
        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise self.bad_shape()
        return normalize_rows(rows)
