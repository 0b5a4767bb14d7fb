"""
Supabase Realtime subscription for the staff dashboard change feed.

Each worker opens its own Realtime channel on ``public.applications``
with ``event="*"``, so inserts, updates and deletes reach every open
dashboard stream whichever worker, replica or client made them. The
callback forwards each row change to :data:`angels.changes.change_feed`.

While the channel is joined the routers' local publishes are skipped.
If the channel cannot be joined, or drops, those local publishes keep
the dashboards of this worker up to date.

Configuration via environment variables:
- REALTIME_ENABLED: set to 'false' to skip the subscription (default: true)
"""

import logging
import os
from typing import Any, Dict, Optional, Tuple

from supabase import AsyncClient, acreate_client

from angels.changes import ChangeFeed, change_feed

logger = logging.getLogger(__name__)

CHANNEL_NAME = "applications_changes"
APPLICATIONS_TABLE = "applications"

REALTIME_ENABLED = os.getenv("REALTIME_ENABLED", "true").strip().lower() in (
    "1",
    "true",
    "yes",
    "y",
    "on",
)

# Realtime event type -> change feed action
ACTIONS = {
    "INSERT": "inserted",
    "UPDATE": "updated",
    "DELETE": "deleted",
}


def change_from_payload(payload: Dict[str, Any]) -> Tuple[str, Optional[str]]:
    """Pull the action and row id out of a ``postgres_changes`` payload.

    The row change sits under ``data`` with ``type`` and ``record`` /
    ``old_record``; the flat JS-style ``eventType`` / ``new`` / ``old``
    shape is accepted as well.
    """
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    kind = str(data.get("type") or data.get("eventType") or "").upper()
    record = data.get("record") or data.get("new") or {}
    old_record = data.get("old_record") or data.get("old") or {}
    application_id = record.get("id") or old_record.get("id")
    return ACTIONS.get(kind, "changed"), application_id


class ApplicationsRealtime:
    """Owns the async Supabase client and the ``applications`` channel."""

    def __init__(self, feed: ChangeFeed = change_feed) -> None:
        self._feed = feed
        self._client: Optional[AsyncClient] = None
        self._channel: Any = None

    @property
    def connected(self) -> bool:
        return self._feed.realtime_connected

    def handle_change(self, payload: Dict[str, Any]) -> None:
        """Realtime callback: one row changed somewhere."""
        action, application_id = change_from_payload(payload)
        delivered = self._feed.broadcast(action, application_id)
        logger.debug(
            "Realtime %s on application %s relayed to %d streams",
            action,
            application_id,
            delivered,
        )

    def handle_status(self, state: Any, error: Optional[Exception] = None) -> None:
        """Channel state callback; local publishes resume unless joined."""
        value = getattr(state, "value", state)
        if value == "SUBSCRIBED":
            self._feed.realtime_connected = True
            logger.info("Realtime channel %s joined", CHANNEL_NAME)
            return
        self._feed.realtime_connected = False
        logger.warning(
            "Realtime channel %s is %s; using in-process change events (%s)",
            CHANNEL_NAME,
            value,
            error,
        )

    async def start(self, url: str, key: str) -> bool:
        """Open the channel; returns False when Realtime is unavailable."""
        try:
            self._client = await acreate_client(url, key)
            channel = self._client.channel(CHANNEL_NAME)
            channel.on_postgres_changes(
                "*",
                schema="public",
                table=APPLICATIONS_TABLE,
                callback=self.handle_change,
            )
            await channel.subscribe(self.handle_status)
        except Exception as e:
            logger.warning(
                "Realtime subscription failed, using in-process change events: %s", e
            )
            self._feed.realtime_connected = False
            return False
        self._channel = channel
        return True

    async def stop(self) -> None:
        self._feed.realtime_connected = False
        if self._client is None or self._channel is None:
            return
        try:
            await self._client.remove_channel(self._channel)
        except Exception as e:
            logger.warning("Realtime channel %s did not close cleanly: %s", CHANNEL_NAME, e)
        self._channel = None


# Module-level singleton
applications_realtime = ApplicationsRealtime()
