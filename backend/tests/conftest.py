from __future__ import annotations

import pytest

from app.schemas.market import Candle
from app.services.stream import reset_state_publisher

MINUTE_MS = 60_000
START_MS = 1_717_430_400_000


def make_series(closes: list[float], spread: float = 1.0) -> list[Candle]:
    """Ascending one-minute candles around the given closes."""
    return [
        Candle(
            open_time_ms=START_MS + i * MINUTE_MS,
            open=close - spread / 2,
            high=close + spread,
            low=close - spread,
            close=close,
        )
        for i, close in enumerate(closes)
    ]


@pytest.fixture
def uptrend() -> list[Candle]:
    return make_series([100.0 + i for i in range(120)])


@pytest.fixture
def downtrend() -> list[Candle]:
    return make_series([300.0 - i for i in range(120)])


@pytest.fixture
def sideways() -> list[Candle]:
    return make_series([100.0] * 120)


@pytest.fixture(autouse=True)
def _fresh_publisher():
    reset_state_publisher()
    yield
    reset_state_publisher()
