"""
Tests for the dashboard change feed (Server-Sent Events).

The HTTP stream never ends, so the feed is driven directly with
``asyncio.run`` instead of through the TestClient. The Supabase Realtime
client is replaced with a fake channel whose callbacks the tests call.

Covers:
- SSE frame format and keep-alive pings
- Fan-out, full queues and stream lifecycle
- Realtime payload parsing, relay of changes made elsewhere, channel
  state handling and fallback to local publishes

Usage:
    cd backend && pytest tests/test_changes.py -v
"""

import asyncio
import json
import uuid
from datetime import datetime, timezone

import pytest


def _decode(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: "):].strip())


class TestSseFormat:

    def test_event_frame(self):
        from angels.changes import sse_event

        frame = sse_event("applications_changed", {"action": "inserted"})
        assert _decode(frame) == {"type": "applications_changed", "data": {"action": "inserted"}}

    def test_encodes_uuid_and_datetime(self):
        from angels.changes import sse_event

        app_id = uuid.uuid4()
        at = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        data = _decode(sse_event("x", {"id": app_id, "at": at}))["data"]
        assert data == {"id": str(app_id), "at": at.isoformat()}

    def test_ping(self):
        from angels.changes import sse_ping

        assert _decode(sse_ping())["type"] == "ping"


class TestChangeFeed:

    def test_publish_without_subscribers(self):
        from angels.changes import ChangeFeed

        assert ChangeFeed().publish("inserted", "abc") == 0

    def test_every_subscriber_receives_event(self):
        from angels.changes import ChangeFeed

        async def run():
            feed = ChangeFeed()
            first, second = feed.subscribe(), feed.subscribe()
            delivered = feed.publish("voted", "app-1")
            return delivered, first.get_nowait(), second.get_nowait()

        delivered, a, b = asyncio.run(run())
        assert delivered == 2
        assert a["event"] == "applications_changed"
        assert a["action"] == "voted"
        assert b["application_id"] == "app-1"

    def test_full_queue_drops_event(self):
        from angels.changes import MAX_QUEUE_SIZE, ChangeFeed

        async def run():
            feed = ChangeFeed()
            queue = feed.subscribe()
            for _ in range(MAX_QUEUE_SIZE):
                feed.publish("inserted")
            return feed.publish("inserted"), queue.qsize()

        delivered, size = asyncio.run(run())
        assert delivered == 0
        assert size == MAX_QUEUE_SIZE

    def test_stream_connects_relays_and_unsubscribes(self):
        from angels.changes import ChangeFeed

        async def run():
            feed = ChangeFeed()
            stream = feed.stream(keepalive=5)
            connected = _decode(await stream.__anext__())
            assert feed.subscriber_count == 1

            feed.publish("status_changed", "app-9")
            event = _decode(await stream.__anext__())
            await stream.aclose()
            return connected, event, feed.subscriber_count

        connected, event, remaining = asyncio.run(run())
        assert connected["type"] == "connected"
        assert event["type"] == "applications_changed"
        assert event["data"]["action"] == "status_changed"
        assert event["data"]["application_id"] == "app-9"
        assert remaining == 0

    def test_stream_pings_when_idle(self):
        from angels.changes import ChangeFeed

        async def run():
            feed = ChangeFeed()
            stream = feed.stream(keepalive=0.01)
            await stream.__anext__()
            ping = _decode(await stream.__anext__())
            await stream.aclose()
            return ping

        assert asyncio.run(run())["type"] == "ping"

    def test_local_publish_skipped_while_realtime_connected(self):
        from angels.changes import ChangeFeed

        async def run():
            feed = ChangeFeed()
            queue = feed.subscribe()
            feed.realtime_connected = True
            skipped = feed.publish("voted", "app-1")
            relayed = feed.broadcast("updated", "app-1")
            return skipped, relayed, queue.qsize()

        assert asyncio.run(run()) == (0, 1, 1)


# ============================================================================
# SUPABASE REALTIME
# ============================================================================

class FakeChannel:
    def __init__(self, topic, join_state="SUBSCRIBED"):
        self.topic = topic
        self.join_state = join_state
        self.bindings = []

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.bindings.append({"event": event, "table": table, "schema": schema, "callback": callback})
        return self

    async def subscribe(self, callback=None):
        if callback:
            callback(self.join_state, None)
        return self


class FakeRealtimeClient:
    def __init__(self, join_state="SUBSCRIBED"):
        self.join_state = join_state
        self.channels = []
        self.removed = []

    def channel(self, topic):
        channel = FakeChannel(topic, self.join_state)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel):
        self.removed.append(channel)


@pytest.fixture
def fake_realtime(monkeypatch):
    client = FakeRealtimeClient()

    async def fake_acreate_client(url, key):
        return client

    monkeypatch.setattr("angels.realtime.acreate_client", fake_acreate_client)
    return client


def _row_change(kind, record=None, old_record=None):
    return {
        "data": {
            "schema": "public",
            "table": "applications",
            "type": kind,
            "record": record or {},
            "old_record": old_record or {},
        },
        "ids": [1],
    }


class TestRealtimePayloads:

    def test_insert_and_update(self):
        from angels.realtime import change_from_payload

        assert change_from_payload(_row_change("INSERT", {"id": "a1"})) == ("inserted", "a1")
        assert change_from_payload(_row_change("UPDATE", {"id": "a2"}, {"id": "a2"})) == ("updated", "a2")

    def test_delete_uses_old_record(self):
        from angels.realtime import change_from_payload

        assert change_from_payload(_row_change("DELETE", old_record={"id": "a3"})) == ("deleted", "a3")

    def test_flat_payload_shape(self):
        from angels.realtime import change_from_payload

        payload = {"eventType": "DELETE", "new": {}, "old": {"id": "a4"}}
        assert change_from_payload(payload) == ("deleted", "a4")

    def test_unknown_event_type(self):
        from angels.realtime import change_from_payload

        assert change_from_payload({"data": {"type": "TRUNCATE"}}) == ("changed", None)


class TestApplicationsRealtime:

    def test_subscribes_to_every_application_change(self, fake_realtime):
        from angels.changes import ChangeFeed
        from angels.realtime import ApplicationsRealtime

        feed = ChangeFeed()
        realtime = ApplicationsRealtime(feed)
        started = asyncio.run(realtime.start("https://db.example.supabase.co", "service-key"))

        assert started is True
        assert feed.realtime_connected is True
        channel = fake_realtime.channels[0]
        assert channel.topic == "applications_changes"
        binding = channel.bindings[0]
        assert (binding["event"], binding["schema"], binding["table"]) == ("*", "public", "applications")

    def test_change_from_another_worker_reaches_stream(self, fake_realtime):
        from angels.changes import ChangeFeed
        from angels.realtime import ApplicationsRealtime

        async def run():
            feed = ChangeFeed()
            realtime = ApplicationsRealtime(feed)
            await realtime.start("https://db.example.supabase.co", "service-key")
            stream = feed.stream(keepalive=5)
            await stream.__anext__()

            # This process made no write; only the channel reports the delete
            callback = fake_realtime.channels[0].bindings[0]["callback"]
            callback(_row_change("DELETE", old_record={"id": "app-7"}))
            event = _decode(await stream.__anext__())
            await stream.aclose()
            await realtime.stop()
            return event, feed.realtime_connected

        event, connected = asyncio.run(run())
        assert event["type"] == "applications_changed"
        assert event["data"]["action"] == "deleted"
        assert event["data"]["application_id"] == "app-7"
        assert connected is False
        assert len(fake_realtime.removed) == 1

    def test_channel_error_falls_back_to_local_publish(self, monkeypatch):
        from angels.changes import ChangeFeed
        from angels.realtime import ApplicationsRealtime

        client = FakeRealtimeClient(join_state="CHANNEL_ERROR")

        async def fake_acreate_client(url, key):
            return client

        monkeypatch.setattr("angels.realtime.acreate_client", fake_acreate_client)

        async def run():
            feed = ChangeFeed()
            queue = feed.subscribe()
            await ApplicationsRealtime(feed).start("https://db.example.supabase.co", "key")
            return feed.realtime_connected, feed.publish("inserted", "app-1"), queue.qsize()

        assert asyncio.run(run()) == (False, 1, 1)

    def test_connection_failure_is_not_fatal(self, monkeypatch):
        from angels.changes import ChangeFeed
        from angels.realtime import ApplicationsRealtime

        async def unreachable(url, key):
            raise ConnectionError("websocket refused")

        monkeypatch.setattr("angels.realtime.acreate_client", unreachable)
        feed = ChangeFeed()
        realtime = ApplicationsRealtime(feed)

        assert asyncio.run(realtime.start("https://db.example.supabase.co", "key")) is False
        assert feed.realtime_connected is False
        asyncio.run(realtime.stop())

    def test_dropped_channel_resumes_local_publish(self):
        from angels.changes import ChangeFeed
        from angels.realtime import ApplicationsRealtime

        feed = ChangeFeed()
        realtime = ApplicationsRealtime(feed)
        realtime.handle_status("SUBSCRIBED")
        assert realtime.connected is True
        realtime.handle_status("CLOSED")
        assert realtime.connected is False
