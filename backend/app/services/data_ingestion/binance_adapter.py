"""
Binance Futures Kline Adapter

Binance blocks many hosting regions, so requests go through a relay
(PROXY_BASE) that forwards /fapi/v1/klines unchanged.
"""

from typing import Any, Optional

from app.core.config import settings
from app.schemas.market import Candle, ProviderName
from app.services.base import ProviderNotConfigured
from app.services.data_ingestion.interface import KlineProvider
from app.services.data_ingestion.normalizer import normalize_rows

# Binance uses the canonical codes directly
INTERVAL_MAP = {
    code: code
    for code in ("1m", "3m", "5m", "15m", "30m", "1h", "2h", "4h", "6h", "8h", "12h", "1d", "3d", "1w")
}


class BinanceProxyProvider(KlineProvider):
    """Binance USDT-M futures klines through a relay."""

    name = ProviderName.BINANCE
    interval_map = INTERVAL_MAP

    def __init__(self, proxy_base: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        base = proxy_base if proxy_base is not None else settings.proxy_base
        self.proxy_base = (base or "").rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.proxy_base)

    def build_request(self, symbol: str, interval_code: str, limit: int) -> tuple[str, dict]:
        if not self.is_configured:
            raise ProviderNotConfigured(self.name.value, "no_proxy_base")
        return f"{self.proxy_base}/fapi/v1/klines", {
            "symbol": symbol,
            "interval": interval_code,
            "limit": limit,
        }

    def parse_response(self, payload: Any) -> list[Candle]:
        # [[openTime, open, high, low, close, volume, closeTime, ...], ...], oldest first
        if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
            raise self.bad_shape()
        return normalize_rows(payload)
