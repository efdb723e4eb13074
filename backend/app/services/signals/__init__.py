"""
Signal Synthesizer

CONTRACT:
    Input:  list[Candle] for one symbol
    Output: SignalResult (LONG / SHORT with trade plan, or FLAT)

Fixed heuristics, no learned parameters.
"""

from app.services.signals.synthesizer import MIN_CANDLES, build_signal

__all__ = [
    "MIN_CANDLES",
    "build_signal",
]
