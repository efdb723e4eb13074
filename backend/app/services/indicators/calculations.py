"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
All math is deterministic.

Callers must pass at least period + 1 values; shorter input is a caller
error and is not checked here.
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence

from app.schemas.market import Candle

# Floor for averaged gains/losses so RSI never divides by zero
RSI_FLOOR = 1e-6


@dataclass
class OHLCData:
    """Candle columns as arrays for calculations."""

    highs: np.ndarray
    lows: np.ndarray
    closes: np.ndarray

    @classmethod
    def from_candles(cls, candles: Sequence[Candle]) -> "OHLCData":
        return cls(
            highs=np.array([c.high for c in candles], dtype=float),
            lows=np.array([c.low for c in candles], dtype=float),
            closes=np.array([c.close for c in candles], dtype=float),
        )


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def ema(data: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential Moving Average.

    Seeded with the first value (no SMA warm-up), so the output has the
    same length as the input and no NaNs.
    """
    data = np.asarray(data, dtype=float)
    result = np.empty(len(data))
    if len(data) == 0:
        return result

    k = 2 / (period + 1)
    result[0] = data[0]
    for i in range(1, len(data)):
        result[i] = data[i] * k + result[i - 1] * (1 - k)

    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: np.ndarray, period: int = 14) -> float:
    """Relative Strength Index of the latest close (0-100)."""
    deltas = np.diff(np.asarray(closes, dtype=float))

    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = ema(gains, period)[-1] or RSI_FLOOR
    avg_loss = ema(losses, period)[-1] or RSI_FLOOR

    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_range(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """True range for each bar after the first."""
    highs = np.asarray(highs, dtype=float)[1:]
    lows = np.asarray(lows, dtype=float)[1:]
    prev_closes = np.asarray(closes, dtype=float)[:-1]

    return np.maximum.reduce([
        highs - lows,
        np.abs(highs - prev_closes),
        np.abs(lows - prev_closes),
    ])


def atr(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> float:
    """Average True Range of the latest bar."""
    return float(ema(true_range(highs, lows, closes), period)[-1])
