from __future__ import annotations

import pytest

from app.services.data_ingestion.normalizer import normalize_rows, to_wire


def test_rows_are_sorted_ascending_with_one_candle_per_row() -> None:
    rows = [
        ["1717430520000", "3", "4", "2", "3.5", "10", "35"],
        ["1717430400000", "1", "2", "0.5", "1.5", "10", "15"],
        ["1717430460000", "2", "3", "1.5", "2.5", "10", "25"],
    ]

    candles = normalize_rows(rows)

    assert len(candles) == 3
    assert [c.open_time_ms for c in candles] == [1717430400000, 1717430460000, 1717430520000]
    assert to_wire(candles)[0] == [1717430400000, 1.0, 2.0, 0.5, 1.5]


def test_custom_field_order_maps_columns() -> None:
    # close, low, high, open, time
    rows = [[1.5, 0.5, 2.0, 1.0, 1000]]

    candles = normalize_rows(rows, field_order=(4, 3, 2, 1, 0))

    assert to_wire(candles) == [[1000, 1.0, 2.0, 0.5, 1.5]]


def test_unparseable_row_raises() -> None:
    with pytest.raises(ValueError):
        normalize_rows([["not-a-time", "1", "2", "0", "1"]])
