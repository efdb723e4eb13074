"""
Signal streaming.

Holds the latest engine snapshot and pushes it to SSE subscribers.
"""

from app.services.stream.publisher import (
    StatePublisher,
    empty_snapshot,
    get_state_publisher,
    hello_event,
    reset_state_publisher,
)

__all__ = [
    "StatePublisher",
    "empty_snapshot",
    "get_state_publisher",
    "hello_event",
    "reset_state_publisher",
]
