"""
Indicator Library

RESPONSIBILITIES:
    - Exponential moving average
    - Relative strength index
    - Average true range

PURE PYTHON - Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from app.services.indicators.calculations import (
    OHLCData,
    atr,
    ema,
    rsi,
    true_range,
)

__all__ = [
    "OHLCData",
    "atr",
    "ema",
    "rsi",
    "true_range",
]
