"""
CONTRACT 2: Signal Layer

Input: list[Candle] (one symbol)
Output: SignalResult

Directional suggestions carry the full trade plan; FLAT results
only say that no setup was found.
"""

from datetime import datetime
from enum import Enum
from typing import Union
from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class SignalDirection(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    FLAT = "FLAT"  # No setup


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


# =============================================================================
# OUTPUT: SignalResult
# =============================================================================


class DirectionalSignal(BaseModel):
    """Trade suggestion with entry, exits and sizing."""

    symbol: str
    direction: SignalDirection
    entry_zone: tuple[float, float] = Field(..., description="(low, high), low <= high")
    take_profits: tuple[float, float, float]
    stop_loss: float
    leverage: int = Field(..., ge=1, le=20)
    confidence: float = Field(..., ge=0.55, le=0.95)
    rationale: list[str] = Field(default_factory=list)
    generated_at: datetime

    @field_validator("direction")
    @classmethod
    def _not_flat(cls, value: SignalDirection) -> SignalDirection:
        if value == SignalDirection.FLAT:
            raise ValueError("directional signal must be LONG or SHORT")
        return value

    @field_validator("entry_zone")
    @classmethod
    def _ordered_zone(cls, value: tuple[float, float]) -> tuple[float, float]:
        if value[0] > value[1]:
            raise ValueError("entry_zone low must not exceed high")
        return value


class FlatSignal(BaseModel):
    """No directional setup."""

    symbol: str
    direction: SignalDirection = SignalDirection.FLAT
    note: str = "No setup"
    generated_at: datetime

    @field_validator("direction")
    @classmethod
    def _only_flat(cls, value: SignalDirection) -> SignalDirection:
        if value != SignalDirection.FLAT:
            raise ValueError("flat signal must have direction FLAT")
        return value


SignalResult = Union[DirectionalSignal, FlatSignal]


# =============================================================================
# OUTPUT: EngineSnapshot
# =============================================================================


class EngineSnapshot(BaseModel):
    """
    Latest engine output.
    Produced by: Engine Scheduler
    Owned by: State Publisher
    """

    updated_at: datetime
    timeframe: str
    version: str = "2.0"
    provider_order: list[str]
    results: dict[str, Union[DirectionalSignal, FlatSignal]] = Field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.results)

    class Config:
        json_schema_extra = {
            "example": {
                "updated_at": "2024-06-03T16:00:00Z",
                "timeframe": "1m",
                "version": "2.0",
                "provider_order": ["BYBIT", "OKX"],
                "results": {
                    "BTCUSDT": {
                        "symbol": "BTCUSDT",
                        "direction": "LONG",
                        "entry_zone": [67810.12, 67902.4],
                        "take_profits": [68055.9, 68148.1, 68240.3],
                        "stop_loss": 67690.5,
                        "leverage": 5,
                        "confidence": 0.7,
                        "rationale": ["Uptrend EMA20>EMA50", "RSI>50"],
                        "generated_at": "2024-06-03T16:00:00Z",
                    },
                    "ETHUSDT": {
                        "symbol": "ETHUSDT",
                        "direction": "FLAT",
                        "note": "No setup",
                        "generated_at": "2024-06-03T16:00:00Z",
                    },
                },
            }
        }
