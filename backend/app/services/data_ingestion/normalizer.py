"""
Kline Normalizer

Turns provider rows into ascending Candle lists.
"""

from typing import Any, Sequence

from app.schemas.market import Candle

# Column positions of [openTime, open, high, low, close] in a provider row
DEFAULT_FIELD_ORDER = (0, 1, 2, 3, 4)


def normalize_rows(
    rows: Sequence[Sequence[Any]],
    field_order: Sequence[int] = DEFAULT_FIELD_ORDER,
) -> list[Candle]:
    """
    Convert raw rows (numbers or numeric strings) into candles.

    Args:
        rows: Provider rows, any order
        field_order: Indexes of (open time, open, high, low, close) in each row

    Returns:
        One candle per row, sorted by open time ascending

    Raises:
        ValueError / TypeError / IndexError: row cannot be parsed
    """
    t, o, h, l, c = field_order
    candles = [
        Candle(
            open_time_ms=int(float(row[t])),
            open=float(row[o]),
            high=float(row[h]),
            low=float(row[l]),
            close=float(row[c]),
        )
        for row in rows
    ]
    candles.sort(key=lambda candle: candle.open_time_ms)
    return candles


def to_wire(candles: Sequence[Candle]) -> list[list]:
    """Candles as canonical 5-tuples."""
    return [candle.to_wire() for candle in candles]
