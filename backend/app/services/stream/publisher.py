"""
State Publisher

Owns the current EngineSnapshot and the SSE subscriber registry.

Features:
- Atomic snapshot replacement, stale ticks ignored
- One serialization per publish, same payload to every subscriber
- Bounded per-client queues; a full queue drops its oldest event
"""

import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from app.schemas.signals import EngineSnapshot

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100


def now_ms() -> int:
    return int(time.time() * 1000)


def empty_snapshot(timeframe: str, provider_order: list[str]) -> EngineSnapshot:
    """Snapshot served before the first successful tick."""
    return EngineSnapshot(
        updated_at=datetime.now(timezone.utc),
        timeframe=timeframe,
        provider_order=list(provider_order),
        results={},
    )


def hello_event() -> str:
    return json.dumps({"type": "hello", "now": now_ms()})


class StatePublisher:
    """
    Holds the latest snapshot and fans events out to subscribers.

    Usage:
        publisher = StatePublisher(empty_snapshot("1m", ["BYBIT"]))
        client_id, queue = publisher.subscribe()
        publisher.publish(snapshot, tick=1)   # every queue gets a signals event
        publisher.heartbeat()                 # every queue gets a heartbeat event
        publisher.unsubscribe(client_id)
    """

    def __init__(self, initial: EngineSnapshot, queue_size: int = QUEUE_SIZE):
        self._snapshot = initial
        self._last_tick = 0
        self._queue_size = queue_size
        self._subscribers: Dict[str, asyncio.Queue] = {}

    @property
    def snapshot(self) -> EngineSnapshot:
        """Current snapshot (a copy, so callers cannot mutate it)."""
        return self._snapshot.model_copy(deep=True)

    @property
    def last_tick(self) -> int:
        return self._last_tick

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ============ Subscriber Registry ============

    def subscribe(self, client_id: Optional[str] = None) -> tuple[str, asyncio.Queue]:
        """Register a subscriber and return its id and event queue."""
        client_id = client_id or str(uuid.uuid4())
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[client_id] = queue
        logger.info(f"Subscriber {client_id} connected ({len(self._subscribers)} total)")
        return client_id, queue

    def unsubscribe(self, client_id: str) -> None:
        """Remove a subscriber; unknown ids are ignored."""
        if self._subscribers.pop(client_id, None) is not None:
            logger.info(f"Subscriber {client_id} disconnected ({len(self._subscribers)} total)")

    # ============ Publication ============

    def publish(self, snapshot: EngineSnapshot, tick: int) -> bool:
        """
        Replace the current snapshot and broadcast it.

        Returns False (and changes nothing) when tick is older than the
        last applied one.
        """
        if tick < self._last_tick:
            logger.warning(f"Ignoring stale snapshot from tick {tick} (current {self._last_tick})")
            return False

        self._snapshot = snapshot
        self._last_tick = tick

        payload = json.dumps({"type": "signals", "payload": snapshot.model_dump(mode="json")})
        self._broadcast(payload)
        return True

    def heartbeat(self) -> None:
        """Liveness event; the snapshot is left untouched."""
        self._broadcast(json.dumps({"type": "heartbeat", "at": now_ms()}))

    def _broadcast(self, payload: str) -> None:
        # Iterate a copy: subscribe/unsubscribe may run between our puts
        for client_id, queue in list(self._subscribers.items()):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                # Slow client: drop its oldest event, keep it registered
                try:
                    queue.get_nowait()
                    queue.put_nowait(payload)
                except (asyncio.QueueEmpty, asyncio.QueueFull):
                    logger.debug(f"Could not deliver event to {client_id}")


# Singleton instance
_publisher: Optional[StatePublisher] = None


def get_state_publisher() -> StatePublisher:
    """Get the state publisher singleton."""
    global _publisher
    if _publisher is None:
        from app.core.config import settings
        from app.services.data_ingestion import build_provider_order

        _publisher = StatePublisher(
            empty_snapshot(
                settings.timeframe,
                build_provider_order(settings.provider_list, None, bool(settings.proxy_base)),
            )
        )
    return _publisher


def reset_state_publisher() -> None:
    """Drop the singleton (tests, shutdown)."""
    global _publisher
    _publisher = None
