"""Change feed for the staff dashboard.

Every insert, update or delete on the ``applications`` table becomes an
``applications_changed`` event. Dashboard clients hold a Server-Sent
Events stream open and refetch the whole list whenever an event arrives.

All SSE events follow the format: data: {json}\\n\\n
Event types: connected, applications_changed, ping
"""

import asyncio
import json
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, AsyncIterator, Optional, Set

logger = logging.getLogger(__name__)

APPLICATIONS_CHANGED = "applications_changed"

# Seconds between keep-alive pings while no change arrives
KEEPALIVE_SECONDS = 25.0

# Slow subscribers drop events past this depth; they refetch anyway
MAX_QUEUE_SIZE = 100


class _SSEEncoder(json.JSONEncoder):
    """JSON encoder that handles UUID and datetime values in event payloads."""

    def default(self, o: Any) -> Any:
        if isinstance(o, uuid.UUID):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return super().default(o)


def sse_event(event_type: str, data: Any) -> str:
    """Format one Server-Sent Event carrying ``type`` and ``data`` keys."""
    payload = {"type": event_type, "data": data}
    return f"data: {json.dumps(payload, cls=_SSEEncoder)}\n\n"


def sse_ping() -> str:
    return sse_event("ping", {"at": datetime.now(timezone.utc)})


class ChangeFeed:
    """Fan-out of change notifications to every open dashboard stream.

    Events come from two sources. The Supabase Realtime subscription
    (``angels.realtime``) reports every row change on ``applications``
    from any worker or client. Routers also call :meth:`publish` after
    their own writes; those local events are skipped while the Realtime
    channel is joined, so each change reaches a stream once.

    Must be published to and subscribed from the event loop thread; the
    routers publish after their ``asyncio.to_thread`` call returns.
    """

    def __init__(self) -> None:
        self._subscribers: Set[asyncio.Queue] = set()
        self.realtime_connected = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=MAX_QUEUE_SIZE)
        self._subscribers.add(queue)
        logger.debug("Change feed subscriber added (%d open)", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def publish(
        self,
        action: str,
        application_id: Optional[str] = None,
        event_type: str = APPLICATIONS_CHANGED,
    ) -> int:
        """Queue a locally made change; returns how many streams received it.

        Returns 0 without queueing while Realtime is connected.
        """
        if self.realtime_connected:
            logger.debug("Skipping local %s event; Realtime will deliver it", action)
            return 0
        return self.broadcast(action, application_id, event_type)

    def broadcast(
        self,
        action: str,
        application_id: Optional[str] = None,
        event_type: str = APPLICATIONS_CHANGED,
    ) -> int:
        """Queue an event for every subscriber; returns how many received it."""
        event = {
            "event": event_type,
            "action": action,
            "application_id": application_id,
            "at": datetime.now(timezone.utc).isoformat(),
        }
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropping %s event for a slow dashboard stream", action)
        return delivered

    async def stream(
        self, keepalive: float = KEEPALIVE_SECONDS
    ) -> AsyncIterator[str]:
        """Yield formatted SSE frames until the client disconnects."""
        queue = self.subscribe()
        try:
            yield sse_event("connected", {"subscribers": len(self._subscribers)})
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield sse_ping()
                    continue
                yield sse_event(event["event"], event)
        finally:
            self.unsubscribe(queue)


# Module-level singleton
change_feed = ChangeFeed()
