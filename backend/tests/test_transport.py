from __future__ import annotations

import asyncio

from aiohttp import web
from aiohttp import test_utils

import app.services.data_ingestion.bybit_adapter as bybit_adapter
from app.services.base import ProviderError
from app.services.data_ingestion.bybit_adapter import BybitProvider
from app.services.data_ingestion.interface import USER_AGENT

ROWS = [
    ["1717430460000", "67880.0", "67930", "67850", "67920.3", "10.1", "686000"],
    ["1717430400000", "67850.0", "67890", "67800", "67880.0", "9.7", "658000"],
]


def _exchange(release: asyncio.Event, seen: list) -> web.Application:
    async def ok(request):
        seen.append((request.headers.get("User-Agent"), dict(request.query)))
        return web.json_response({"retCode": 0, "result": {"list": ROWS}})

    async def server_error(request):
        return web.Response(status=500, text="upstream exploded")

    async def garbage(request):
        return web.Response(text="{not json", content_type="application/json")

    async def slow(request):
        await asyncio.wait_for(release.wait(), timeout=2)
        return web.json_response({"retCode": 0, "result": {"list": ROWS}})

    app = web.Application()
    app.router.add_get("/ok", ok)
    app.router.add_get("/500", server_error)
    app.router.add_get("/garbage", garbage)
    app.router.add_get("/slow", slow)
    return app


async def _reason(provider: BybitProvider) -> str:
    try:
        await provider.fetch("btcusdt", "1m", 50)
    except ProviderError as e:
        return e.reason
    return "ok"


def test_transport_failures_map_to_provider_reasons(monkeypatch) -> None:
    async def scenario():
        release = asyncio.Event()
        seen: list = []
        server = test_utils.TestServer(_exchange(release, seen), host="127.0.0.1")
        await server.start_server()
        provider = BybitProvider(timeout=0.3)
        reasons = {}
        try:
            for path in ("/ok", "/500", "/garbage", "/slow"):
                monkeypatch.setattr(bybit_adapter, "BYBIT_KLINE_URL", str(server.make_url(path)))
                reasons[path] = await _reason(provider)
        finally:
            release.set()
            await provider.close()
            await server.close()
        return reasons, seen

    reasons, seen = asyncio.run(scenario())

    assert reasons == {
        "/ok": "ok",
        "/500": "http_500",
        "/garbage": "bybit_bad_shape",
        "/slow": "timeout",
    }
    user_agent, query = seen[0]
    assert user_agent == USER_AGENT
    assert query == {"category": "linear", "symbol": "BTCUSDT", "interval": "1", "limit": "50"}


def test_unreachable_host_is_a_network_error(monkeypatch) -> None:
    async def scenario():
        server = test_utils.TestServer(web.Application(), host="127.0.0.1")
        await server.start_server()
        url = str(server.make_url("/gone"))
        await server.close()

        monkeypatch.setattr(bybit_adapter, "BYBIT_KLINE_URL", url)
        provider = BybitProvider(timeout=1.0)
        try:
            return await _reason(provider)
        finally:
            await provider.close()

    assert asyncio.run(scenario()).startswith("network_error")
