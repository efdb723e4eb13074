"""
Kline Provider Interface

Defines the contract every market-data provider adapter implements.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from app.core.config import settings
from app.schemas.market import Candle, ProviderName
from app.services.base import ProviderError

logger = logging.getLogger(__name__)

USER_AGENT = "AIVARA/2.0"


class KlineProvider(ABC):
    """
    Kline Provider Contract.

    INPUT: symbol, interval, limit
        - symbol: Trading pair in exchange-neutral form (BTCUSDT)
        - interval: Canonical interval code (1m, 1h, 1d, ...)
        - limit: Candles wanted, capped at max_limit

    OUTPUT: list[Candle], oldest first

    Raises ProviderError when the interval is unmapped, the response has
    the wrong shape, or the request fails or times out.
    """

    name: ProviderName
    interval_map: dict[str, str] = {}
    max_limit: int = 200

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout if timeout is not None else settings.provider_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    def map_interval(self, interval: str) -> str:
        """Translate a canonical interval into this provider's code."""
        code = self.interval_map.get(interval.lower())
        if code is None:
            raise ProviderError(self.name.value, "unsupported_interval", {"interval": interval})
        return code

    async def fetch(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        """Fetch and normalize candle history."""
        code = self.map_interval(interval)
        url, params = self.build_request(symbol.upper(), code, min(self.max_limit, limit))
        payload = await self._get_json(url, params)
        try:
            return self.parse_response(payload)
        except ProviderError:
            raise
        except (ValueError, TypeError, IndexError, KeyError) as e:
            raise ProviderError(self.name.value, f"{self.name.value.lower()}_bad_shape", {"error": str(e)})

    @abstractmethod
    def build_request(self, symbol: str, interval_code: str, limit: int) -> tuple[str, dict]:
        """Return (url, query params) for a history request."""
        pass

    @abstractmethod
    def parse_response(self, payload: Any) -> list[Candle]:
        """Validate the provider payload and return ascending candles."""
        pass

    def bad_shape(self) -> ProviderError:
        return ProviderError(self.name.value, f"{self.name.value.lower()}_bad_shape")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={
                    "User-Agent": USER_AGENT,
                    "Accept": "application/json",
                },
            )
        return self._session

    async def _get_json(self, url: str, params: dict) -> Any:
        """GET a JSON document, mapping transport failures to ProviderError."""
        session = await self._ensure_session()
        try:
            async with session.get(url, params=params) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise ProviderError(
                        self.name.value,
                        f"http_{resp.status}",
                        {"body": text[:200]},
                    )
                return await resp.json(content_type=None)
        except asyncio.TimeoutError:
            raise ProviderError(self.name.value, "timeout")
        except aiohttp.ClientError as e:
            raise ProviderError(self.name.value, f"network_error: {e}")
        except ValueError as e:
            raise ProviderError(self.name.value, f"{self.name.value.lower()}_bad_shape", {"error": str(e)})

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
