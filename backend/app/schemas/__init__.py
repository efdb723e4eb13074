"""
AIVARA Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from app.schemas.market import (
    Candle,
    KlineRequest,
    ProviderName,
)
from app.schemas.signals import (
    DirectionalSignal,
    EngineSnapshot,
    EngineState,
    FlatSignal,
    SignalDirection,
    SignalResult,
)

__all__ = [
    # Market
    "Candle",
    "KlineRequest",
    "ProviderName",
    # Signals
    "DirectionalSignal",
    "EngineSnapshot",
    "EngineState",
    "FlatSignal",
    "SignalDirection",
    "SignalResult",
]
