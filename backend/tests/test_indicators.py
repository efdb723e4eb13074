from __future__ import annotations

import numpy as np
import pytest

from app.services.indicators.calculations import atr, ema, rsi, true_range


def test_ema_hand_computed() -> None:
    # k = 0.5 for period 3
    assert ema(np.array([1.0, 2.0, 3.0]), 3) == pytest.approx([1.0, 1.5, 2.25])


def test_ema_first_value_is_seed_and_length_matches() -> None:
    values = np.array([5.0, 7.0, 6.0, 8.0, 9.0])
    out = ema(values, 4)
    assert len(out) == len(values)
    assert out[0] == 5.0


def test_ema_of_constant_series_is_constant() -> None:
    assert ema(np.full(60, 42.0), 20) == pytest.approx(np.full(60, 42.0))


def test_rsi_hand_computed() -> None:
    # gains [1, 1, 0], losses [0, 0, 1], k = 2/3
    # avg gain 1/3, avg loss 2/3 -> rs 0.5 -> 33.33
    assert rsi(np.array([1.0, 2.0, 3.0, 2.0]), 2) == pytest.approx(100 / 3)


def test_rsi_limits_for_monotonic_series() -> None:
    up = np.arange(1.0, 60.0)
    down = up[::-1]
    assert rsi(up) > 99.99
    assert rsi(down) < 0.01


def test_rsi_flat_series_is_fifty() -> None:
    assert rsi(np.full(30, 10.0)) == pytest.approx(50.0)


def test_true_range_and_atr_hand_computed() -> None:
    highs = np.array([10.0, 11.0, 12.0])
    lows = np.array([8.0, 9.0, 9.5])
    closes = np.array([9.0, 10.0, 11.0])

    assert true_range(highs, lows, closes) == pytest.approx([2.0, 2.5])
    # ema([2, 2.5], 2): 2 -> 2.5 * 2/3 + 2 / 3
    assert atr(highs, lows, closes, 2) == pytest.approx(7 / 3)
