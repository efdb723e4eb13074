from __future__ import annotations

import asyncio

import pytest

import app.services.data_ingestion.service as service_module
from app.core.config import settings

from app.schemas.market import KlineRequest, ProviderName
from app.services.base import AllProvidersFailed, ProviderError
from app.services.data_ingestion.service import KlineService, build_provider_order

from conftest import make_series


class _StubProvider:
    def __init__(self, name: ProviderName, calls: list, candles=None, reason: str = "timeout"):
        self.name = name
        self._calls = calls
        self._candles = candles
        self._reason = reason

    async def fetch(self, symbol, interval, limit):
        self._calls.append(self.name.value)
        if self._candles is None:
            raise ProviderError(self.name.value, self._reason)
        return self._candles

    async def close(self):
        pass


def _service(calls, ok=(), order=("BYBIT", "OKX"), relay=False, backoff=0.0) -> KlineService:
    candles = make_series([1.0, 2.0, 3.0])
    providers = {
        name: _StubProvider(
            name,
            calls,
            candles if name.value in ok else None,
            reason=f"{name.value.lower()}_bad_shape",
        )
        for name in ProviderName
    }
    return KlineService(
        providers=providers,
        provider_order=list(order),
        relay_configured=relay,
        backoff_base=backoff,
        backoff_jitter=backoff,
    )


def test_order_puts_preferred_first_without_duplicates() -> None:
    assert build_provider_order(["BYBIT", "OKX"], "okx") == ["OKX", "BYBIT"]
    assert build_provider_order(["BYBIT", "OKX"], "BINANCE") == ["BINANCE", "BYBIT", "OKX"]


def test_order_appends_relay_provider_when_configured() -> None:
    assert build_provider_order(["BYBIT", "OKX"], None, relay_configured=True) == ["BYBIT", "OKX", "BINANCE"]
    assert build_provider_order(["BINANCE", "OKX"], None, relay_configured=True) == ["BINANCE", "OKX"]
    assert build_provider_order(["BYBIT", "OKX"], None, relay_configured=False) == ["BYBIT", "OKX"]


def test_first_success_short_circuits() -> None:
    calls: list = []
    service = _service(calls, ok=("BYBIT", "OKX"))

    candles = asyncio.run(service.fetch("BTCUSDT", "1m", 200))

    assert len(candles) == 3
    assert calls == ["BYBIT"]


def test_preferred_provider_is_tried_first() -> None:
    calls: list = []
    service = _service(calls, ok=("BYBIT", "OKX"))

    asyncio.run(service.fetch("BTCUSDT", "1m", 200, preferred_provider="OKX"))

    assert calls == ["OKX"]


def test_falls_back_to_next_provider_once() -> None:
    calls: list = []
    service = _service(calls, ok=("OKX",))

    candles = asyncio.run(service.fetch("BTCUSDT", "1m", 200))

    assert len(candles) == 3
    assert calls == ["BYBIT", "OKX"]


def test_all_failed_names_last_error() -> None:
    calls: list = []
    service = _service(calls, ok=(), relay=True)

    with pytest.raises(AllProvidersFailed) as exc:
        asyncio.run(service.fetch("BTCUSDT", "1m", 200))

    assert calls == ["BYBIT", "OKX", "BINANCE"]
    assert exc.value.message == "all_providers_failed: binance_bad_shape"
    assert isinstance(exc.value.last_error, ProviderError)


def test_unknown_provider_is_skipped() -> None:
    calls: list = []
    service = _service(calls, ok=("BYBIT",), order=("KRAKEN", "BYBIT"))

    asyncio.run(service.fetch("BTCUSDT", "1m", 200))

    assert calls == ["BYBIT"]


def test_execute_uses_request_fields() -> None:
    calls: list = []
    service = _service(calls, ok=("OKX",))

    candles = asyncio.run(service.execute(KlineRequest(symbol="ETHUSDT", interval="5m", provider="okx")))

    assert len(candles) == 3
    assert calls == ["OKX"]


def _record_sleeps(monkeypatch) -> list[float]:
    delays: list[float] = []

    async def _sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(service_module.asyncio, "sleep", _sleep)
    return delays


def test_backs_off_once_per_failed_provider_within_jitter(monkeypatch) -> None:
    delays = _record_sleeps(monkeypatch)
    calls: list = []
    service = _service(calls, ok=(), backoff=None)

    with pytest.raises(AllProvidersFailed):
        asyncio.run(service.fetch("BTCUSDT", "1m", 200))

    low = settings.backoff_base
    high = settings.backoff_base + settings.backoff_jitter
    assert calls == ["BYBIT", "OKX"]
    assert len(delays) == 2
    assert all(low <= d <= high for d in delays)


def test_success_after_failure_waits_once(monkeypatch) -> None:
    delays = _record_sleeps(monkeypatch)
    calls: list = []
    service = _service(calls, ok=("OKX",), backoff=None)

    asyncio.run(service.fetch("BTCUSDT", "1m", 200))

    assert calls == ["BYBIT", "OKX"]
    assert len(delays) == 1


def test_unknown_provider_does_not_wait(monkeypatch) -> None:
    delays = _record_sleeps(monkeypatch)
    calls: list = []

    asyncio.run(_service(calls, ok=("BYBIT",), order=("KRAKEN", "BYBIT"), backoff=None).fetch("BTCUSDT", "1m", 200))
    assert delays == []

    with pytest.raises(AllProvidersFailed) as exc:
        asyncio.run(_service(calls, ok=(), order=("KRAKEN", "BYBIT", "FTX"), backoff=None).fetch("BTCUSDT", "1m", 200))

    assert len(delays) == 1
    assert exc.value.message == "all_providers_failed: unknown_provider"
