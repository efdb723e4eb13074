"""
Server-Sent Events (SSE) endpoint for real-time signal streaming.

Pushes engine snapshots to the frontend without polling.
"""

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from app.services.stream import get_state_publisher, hello_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/signals")
async def stream_signals():
    """
    Stream engine events via SSE.

    Events (JSON in the data field):
    - {"type": "hello", "now": ms} once on connect
    - {"type": "signals", "payload": snapshot} after every publish
    - {"type": "heartbeat", "at": ms} after every empty tick

    Usage (JavaScript):
    ```js
    const eventSource = new EventSource('/api/v1/stream/signals');
    eventSource.onmessage = (event) => {
      const msg = JSON.parse(event.data);
      if (msg.type === 'signals') render(msg.payload);
    };
    ```
    """

    async def event_generator():
        publisher = get_state_publisher()
        client_id, queue = publisher.subscribe()

        try:
            yield f"data: {hello_event()}\n\n"
            while True:
                payload = await queue.get()
                yield f"data: {payload}\n\n"
        except asyncio.CancelledError:
            pass
        finally:
            publisher.unsubscribe(client_id)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering for nginx
        },
    )
