"""
Signal Synthesizer

Rule-based trade suggestion from one candle series:
    EMA20 / EMA50 trend + RSI14 momentum -> direction
    ATR14 -> entry zone, stop, targets
    Stop distance -> leverage for ~1% risk

Deterministic: same candles give the same result (apart from generated_at).
"""

import math
from datetime import datetime, timezone
from typing import Optional, Sequence

from app.schemas.market import Candle
from app.schemas.signals import (
    DirectionalSignal,
    FlatSignal,
    SignalDirection,
    SignalResult,
)
from app.services.base import InsufficientData, InvalidSeries
from app.services.indicators.calculations import OHLCData, atr, ema, rsi

EMA_FAST = 20
EMA_SLOW = 50
RSI_PERIOD = 14
ATR_PERIOD = 14

# Longest lookback + 1
MIN_CANDLES = max(EMA_FAST, EMA_SLOW, RSI_PERIOD, ATR_PERIOD) + 1

# ATR multiples
ZONE_FAR = 0.5
ZONE_NEAR = 0.2
STOP_EMA = 0.5
STOP_ZONE = 0.8
TARGETS = (1.0, 1.6, 2.2)

TARGET_RISK = 0.01  # 1% of margin to the stop at full leverage
MIN_RISK_FRACTION = 1e-6
MAX_LEVERAGE = 20

BASE_CONFIDENCE = 0.55
MAX_CONFIDENCE = 0.95
MAX_GAP_BONUS = 0.20
GAP_BONUS_PER_PCT = 0.05
RSI_BONUS = 0.10


def _validate(symbol: str, candles: Sequence[Candle]) -> None:
    if not candles:
        raise InvalidSeries(symbol, f"klines_invalid_{symbol}")
    if not all(isinstance(c, Candle) for c in candles):
        raise InvalidSeries(symbol, f"klines_invalid_{symbol}")
    if any(b.open_time_ms <= a.open_time_ms for a, b in zip(candles, candles[1:])):
        raise InvalidSeries(symbol, f"klines_unordered_{symbol}")
    if len(candles) < MIN_CANDLES:
        raise InsufficientData(
            symbol,
            f"need {MIN_CANDLES} candles, got {len(candles)}",
        )


def _direction(close: float, ema_fast: float, ema_slow: float, rsi_value: float) -> Optional[SignalDirection]:
    if close > ema_slow and ema_fast > ema_slow and rsi_value > 50:
        return SignalDirection.LONG
    if close < ema_slow and ema_fast < ema_slow and rsi_value < 50:
        return SignalDirection.SHORT
    return None


def entry_zone(direction: SignalDirection, ema_fast: float, atr_value: float) -> tuple[float, float]:
    """Band around EMA20: 0.5 ATR on the far side, 0.2 ATR on the near side."""
    if direction == SignalDirection.LONG:
        low, high = ema_fast - ZONE_FAR * atr_value, ema_fast + ZONE_NEAR * atr_value
    else:
        low, high = ema_fast + ZONE_FAR * atr_value, ema_fast - ZONE_NEAR * atr_value
    if low > high:
        low, high = high, low
    return low, high


def stop_and_targets(
    direction: SignalDirection,
    zone: tuple[float, float],
    ema_slow: float,
    atr_value: float,
) -> tuple[float, tuple[float, float, float]]:
    """Wider of the EMA50 stop and the zone stop; targets beyond the zone."""
    low, high = zone
    if direction == SignalDirection.LONG:
        stop = min(ema_slow - STOP_EMA * atr_value, low - STOP_ZONE * atr_value)
        targets = tuple(high + m * atr_value for m in TARGETS)
    else:
        stop = max(ema_slow + STOP_EMA * atr_value, high + STOP_ZONE * atr_value)
        targets = tuple(low - m * atr_value for m in TARGETS)
    return stop, targets


def leverage_for(zone: tuple[float, float], stop: float) -> int:
    """Leverage that puts ~1% at risk between zone midpoint and stop."""
    mid = (zone[0] + zone[1]) / 2
    risk_fraction = abs(mid - stop) / mid
    lev = math.floor(TARGET_RISK / max(MIN_RISK_FRACTION, risk_fraction))
    return min(max(1, lev), MAX_LEVERAGE)


def confidence_for(
    direction: SignalDirection,
    close: float,
    ema_fast: float,
    ema_slow: float,
    rsi_value: float,
) -> float:
    gap_pct = abs(ema_fast - ema_slow) / close * 100
    conf = BASE_CONFIDENCE + min(MAX_GAP_BONUS, gap_pct * GAP_BONUS_PER_PCT)
    if (direction == SignalDirection.LONG and rsi_value > 55) or (
        direction == SignalDirection.SHORT and rsi_value < 45
    ):
        conf += RSI_BONUS
    return max(BASE_CONFIDENCE, min(conf, MAX_CONFIDENCE))


def build_signal(
    symbol: str,
    candles: Sequence[Candle],
    now: Optional[datetime] = None,
) -> SignalResult:
    """
    Build a signal for one symbol.

    Args:
        symbol: Trading pair
        candles: Ascending candle series
        now: Timestamp for generated_at (defaults to current UTC time)

    Raises:
        InvalidSeries: empty, malformed or unordered series
        InsufficientData: fewer than MIN_CANDLES candles
    """
    _validate(symbol, candles)
    generated_at = now or datetime.now(timezone.utc)

    data = OHLCData.from_candles(candles)
    close = float(data.closes[-1])
    ema_fast = float(ema(data.closes, EMA_FAST)[-1])
    ema_slow = float(ema(data.closes, EMA_SLOW)[-1])
    rsi_value = rsi(data.closes, RSI_PERIOD)
    atr_value = atr(data.highs, data.lows, data.closes, ATR_PERIOD)

    direction = _direction(close, ema_fast, ema_slow, rsi_value)
    if direction is None:
        return FlatSignal(symbol=symbol, note="No setup", generated_at=generated_at)

    if direction == SignalDirection.LONG:
        rationale = ["Uptrend EMA20>EMA50", "RSI>50"]
    else:
        rationale = ["Downtrend EMA20<EMA50", "RSI<50"]

    zone = entry_zone(direction, ema_fast, atr_value)
    stop, targets = stop_and_targets(direction, zone, ema_slow, atr_value)

    return DirectionalSignal(
        symbol=symbol,
        direction=direction,
        entry_zone=(round(zone[0], 2), round(zone[1], 2)),
        take_profits=tuple(round(tp, 2) for tp in targets),
        stop_loss=round(stop, 2),
        leverage=leverage_for(zone, stop),
        confidence=round(confidence_for(direction, close, ema_fast, ema_slow, rsi_value), 2),
        rationale=rationale,
        generated_at=generated_at,
    )
