"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Lower bound for the engine refresh interval (seconds)
MIN_ENGINE_INTERVAL = 10


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "AIVARA Backend"
    app_version: str = "2.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"

    # CORS
    allowed_origins: list[str] = ["*"]

    # Engine
    symbols: str = "BTCUSDT,ETHUSDT,BNBUSDT,SOLUSDT"  # Comma-separated
    timeframe: str = "1m"
    engine_interval: int = 30  # Seconds between ticks
    engine_limit: int = 200  # Candles per symbol per tick
    enable_engine: bool = True

    # Providers
    providers: str = "BYBIT,OKX"  # Priority order, comma-separated
    proxy_base: Optional[str] = None  # Relay for Binance, e.g. https://<worker>.workers.dev
    provider_timeout: float = 15.0
    klines_max_limit: int = 1500

    # Backoff between provider attempts (seconds)
    backoff_base: float = 0.2
    backoff_jitter: float = 0.3

    @field_validator("timeframe")
    @classmethod
    def _lower_timeframe(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("engine_interval")
    @classmethod
    def _floor_interval(cls, value: int) -> int:
        return max(MIN_ENGINE_INTERVAL, value)

    @field_validator("proxy_base")
    @classmethod
    def _strip_proxy(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @property
    def symbol_list(self) -> list[str]:
        """Configured symbols, upper-cased, in configured order."""
        return [s.strip().upper() for s in self.symbols.split(",") if s.strip()]

    @property
    def provider_list(self) -> list[str]:
        """Provider priority order, upper-cased."""
        return [p.strip().upper() for p in self.providers.split(",") if p.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
