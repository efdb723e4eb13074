"""
Kline Service Implementation

Fetches candle history with provider fallback.
Order: configured priority (PROVIDERS), caller's preferred provider first,
Binance relay appended when PROXY_BASE is set.
"""

import asyncio
import logging
import random
from typing import Optional

from app.core.config import settings
from app.schemas.market import Candle, KlineRequest, ProviderName
from app.services.base import (
    AllProvidersFailed,
    BaseService,
    ProviderError,
)
from app.services.data_ingestion.interface import KlineProvider
from app.services.data_ingestion.bybit_adapter import BybitProvider
from app.services.data_ingestion.okx_adapter import OkxProvider
from app.services.data_ingestion.binance_adapter import BinanceProxyProvider

logger = logging.getLogger(__name__)

RELAY_PROVIDER = ProviderName.BINANCE


def build_provider_order(
    configured: list[str],
    preferred: Optional[str] = None,
    relay_configured: bool = False,
) -> list[str]:
    """
    Resolve the order in which providers are tried.

    Preferred provider goes first (de-duplicated); the relay provider is
    appended when its relay is configured and it is not already listed.
    """
    order = [p.strip().upper() for p in configured if p and p.strip()]
    if preferred:
        preferred = preferred.strip().upper()
        order = [preferred] + [p for p in order if p != preferred]
    if relay_configured and RELAY_PROVIDER.value not in order:
        order.append(RELAY_PROVIDER.value)
    # Drop repeats, keep first occurrence
    return list(dict.fromkeys(order))


def default_providers() -> dict[ProviderName, KlineProvider]:
    """One adapter per known provider."""
    return {
        ProviderName.BYBIT: BybitProvider(),
        ProviderName.OKX: OkxProvider(),
        ProviderName.BINANCE: BinanceProxyProvider(),
    }


class KlineService(BaseService[KlineRequest, list[Candle]]):
    """
    Kline Service (fallback orchestrator).

    Tries providers one after another with a short randomized pause between
    attempts. The first provider that answers wins; callers never learn
    which one it was.
    """

    def __init__(
        self,
        providers: Optional[dict[ProviderName, KlineProvider]] = None,
        provider_order: Optional[list[str]] = None,
        relay_configured: Optional[bool] = None,
        backoff_base: Optional[float] = None,
        backoff_jitter: Optional[float] = None,
    ):
        self._providers = providers if providers is not None else default_providers()
        self._provider_order = (
            provider_order if provider_order is not None else settings.provider_list
        )
        self._relay_configured = (
            relay_configured if relay_configured is not None else bool(settings.proxy_base)
        )
        self._backoff_base = settings.backoff_base if backoff_base is None else backoff_base
        self._backoff_jitter = settings.backoff_jitter if backoff_jitter is None else backoff_jitter

    @property
    def name(self) -> str:
        return "KlineService"

    @property
    def provider_order(self) -> list[str]:
        """Order used when no provider is preferred."""
        return build_provider_order(self._provider_order, None, self._relay_configured)

    def resolve_order(self, preferred: Optional[str] = None) -> list[str]:
        return build_provider_order(self._provider_order, preferred, self._relay_configured)

    async def execute(self, input_data: KlineRequest) -> list[Candle]:
        return await self.fetch(
            input_data.symbol,
            input_data.interval,
            input_data.limit,
            input_data.provider,
        )

    async def fetch(
        self,
        symbol: str,
        interval: str,
        limit: int,
        preferred_provider: Optional[str] = None,
    ) -> list[Candle]:
        """
        Fetch candles, falling back across providers.

        Raises:
            AllProvidersFailed: every candidate failed; names the last error
        """
        last_error: Optional[Exception] = None

        for provider_id in self.resolve_order(preferred_provider):
            try:
                provider = self._get_provider(provider_id)
            except ProviderError as e:
                last_error = e
                logger.warning(f"Skipping unknown provider {provider_id}")
                continue

            try:
                candles = await provider.fetch(symbol, interval, limit)
                logger.debug(f"{provider_id}: {symbol} {interval} -> {len(candles)} candles")
                return candles
            except ProviderError as e:
                last_error = e
                logger.warning(f"{provider_id} failed for {symbol}: {e.reason}")
            await self._backoff()

        raise AllProvidersFailed(symbol, last_error)

    def _get_provider(self, provider_id: str) -> KlineProvider:
        try:
            return self._providers[ProviderName(provider_id)]
        except (ValueError, KeyError):
            raise ProviderError(provider_id, "unknown_provider")

    async def _backoff(self) -> None:
        delay = self._backoff_base + random.random() * self._backoff_jitter
        logger.debug(f"Backing off {delay:.2f}s before next provider")
        await asyncio.sleep(delay)

    async def health_check(self) -> bool:
        """Healthy when at least one provider is usable."""
        return any(
            not isinstance(p, BinanceProxyProvider) or p.is_configured
            for p in self._providers.values()
        )

    async def close(self) -> None:
        """Close all provider sessions."""
        for provider in self._providers.values():
            await provider.close()


# Singleton instance
_service_instance: Optional[KlineService] = None


def get_kline_service() -> KlineService:
    """Get or create kline service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = KlineService()
    return _service_instance


async def close_kline_service() -> None:
    """Close the kline service sessions."""
    global _service_instance
    if _service_instance is not None:
        await _service_instance.close()
        _service_instance = None
