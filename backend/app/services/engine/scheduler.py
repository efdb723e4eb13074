"""
Engine Scheduler

Runs one refresh pass per tick:
    for each symbol (concurrently): KlineService.fetch -> build_signal
    then publish the snapshot, or a heartbeat if nothing came back.

States: IDLE (waiting) and RUNNING (pass in progress). A timer firing
while a pass is RUNNING is skipped, so passes never overlap.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings
from app.schemas.signals import EngineSnapshot, EngineState, SignalResult
from app.services.data_ingestion.service import KlineService
from app.services.signals.synthesizer import build_signal
from app.services.stream.publisher import StatePublisher

logger = logging.getLogger(__name__)


class EngineScheduler:
    """
    Periodic signal engine.

    Usage:
        scheduler = EngineScheduler(kline_service, publisher)
        await scheduler.start()   # first tick runs immediately
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        kline_service: KlineService,
        publisher: StatePublisher,
        symbols: Optional[list[str]] = None,
        timeframe: Optional[str] = None,
        interval_seconds: Optional[float] = None,
        limit: Optional[int] = None,
    ):
        self._klines = kline_service
        self._publisher = publisher
        self._symbols = symbols if symbols is not None else settings.symbol_list
        self._timeframe = timeframe or settings.timeframe
        self._interval = interval_seconds if interval_seconds is not None else settings.engine_interval
        self._limit = limit or settings.engine_limit

        self._state = EngineState.IDLE
        self._tick = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._pass_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    @property
    def timeframe(self) -> str:
        return self._timeframe

    # ============ Lifecycle ============

    async def start(self) -> None:
        """Start the timer loop."""
        if self._running:
            logger.warning("Engine scheduler already running")
            return

        self._running = True
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(
            f"Engine started: {len(self._symbols)} symbols, {self._timeframe}, "
            f"every {self._interval}s"
        )

    async def stop(self) -> None:
        """Stop the timer loop and wait for any pass in flight."""
        self._running = False

        for task in (self._timer_task, self._pass_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._timer_task = None
        self._pass_task = None
        self._state = EngineState.IDLE
        logger.info("Engine stopped")

    async def _timer_loop(self) -> None:
        while self._running:
            if self._state == EngineState.RUNNING:
                logger.warning(f"Tick {self._tick} still running, skipping this interval")
            else:
                self._pass_task = asyncio.create_task(self.run_tick())
                self._pass_task.add_done_callback(self._log_pass_failure)
            await asyncio.sleep(self._interval)

    def _log_pass_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Engine pass failed: {error!r}")

    # ============ Tick ============

    async def run_tick(self) -> Optional[EngineSnapshot]:
        """
        Run one pass over all symbols.

        Returns:
            The published snapshot, or None when the tick produced no
            results (heartbeat only) or another pass was in progress.
        """
        if self._state == EngineState.RUNNING:
            return None

        self._state = EngineState.RUNNING
        self._tick += 1
        tick = self._tick
        try:
            outcomes = await asyncio.gather(
                *(self._process_symbol(symbol) for symbol in self._symbols)
            )

            # gather keeps argument order, so results follow configured symbol order
            results = {
                symbol: result
                for symbol, result in zip(self._symbols, outcomes)
                if result is not None
            }

            if not results:
                logger.warning(f"Tick {tick}: no symbol produced a result, sending heartbeat")
                self._publisher.heartbeat()
                return None

            snapshot = EngineSnapshot(
                updated_at=datetime.now(timezone.utc),
                timeframe=self._timeframe,
                provider_order=self._klines.provider_order,
                results=results,
            )
            self._publisher.publish(snapshot, tick)
            logger.info(f"Tick {tick}: published {len(results)}/{len(self._symbols)} signals")
            return snapshot
        finally:
            self._state = EngineState.IDLE

    async def _process_symbol(self, symbol: str) -> Optional[SignalResult]:
        """Fetch + synthesize for one symbol; failures are logged and dropped."""
        try:
            candles = await self._klines.fetch(symbol, self._timeframe, self._limit)
            return build_signal(symbol, candles)
        except Exception as e:
            logger.error(f"Symbol {symbol} failed: {e}")
            return None


# Singleton instance
_scheduler: Optional[EngineScheduler] = None


def get_engine_scheduler() -> EngineScheduler:
    """Get the engine scheduler singleton."""
    global _scheduler
    if _scheduler is None:
        from app.services.data_ingestion import get_kline_service
        from app.services.stream import get_state_publisher

        _scheduler = EngineScheduler(get_kline_service(), get_state_publisher())
    return _scheduler


async def start_engine_scheduler() -> EngineScheduler:
    """Start the engine scheduler."""
    scheduler = get_engine_scheduler()
    await scheduler.start()
    return scheduler


async def stop_engine_scheduler() -> None:
    """Stop the engine scheduler."""
    global _scheduler
    if _scheduler:
        await _scheduler.stop()
        _scheduler = None
