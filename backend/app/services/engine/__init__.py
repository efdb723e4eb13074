"""
Signal engine.

Periodic pass over all configured symbols: fetch klines with fallback,
build signals, publish the snapshot.
"""

from app.services.engine.scheduler import (
    EngineScheduler,
    get_engine_scheduler,
    start_engine_scheduler,
    stop_engine_scheduler,
)

__all__ = [
    "EngineScheduler",
    "get_engine_scheduler",
    "start_engine_scheduler",
    "stop_engine_scheduler",
]
