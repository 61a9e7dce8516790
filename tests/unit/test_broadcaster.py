"""Tests for SessionBroadcaster and the Redis relay message path."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fs_common.enums import RealtimeEventType
from src.fs_realtime.application.broadcaster import SessionBroadcaster
from src.fs_realtime.application.schemas import RealtimeEvent
from src.fs_realtime.infrastructure.redis_relay import (
    CHANNEL_PREFIX,
    RedisBroadcastRelay,
    channel_for,
)


def event(session_id: str = "s1", kind: RealtimeEventType = RealtimeEventType.ITEM_CLAIMED):
    return RealtimeEvent(type=kind, session_id=session_id, member_id="alice")


class TestSubscriptions:
    async def test_publish_reaches_all_subscribers_of_session(self) -> None:
        broadcaster = SessionBroadcaster()
        first = broadcaster.subscribe("s1")
        second = broadcaster.subscribe("s1")
        other = broadcaster.subscribe("s2")

        await broadcaster.publish("s1", event())

        assert (await first.next_event(timeout=1)).type is RealtimeEventType.ITEM_CLAIMED
        assert (await second.next_event(timeout=1)).session_id == "s1"
        assert other.queue.empty()

    async def test_publish_without_subscribers_is_noop(self) -> None:
        broadcaster = SessionBroadcaster()
        await broadcaster.publish("nobody", event("nobody"))
        assert broadcaster.session_count == 0

    def test_unsubscribe_prunes_session(self) -> None:
        broadcaster = SessionBroadcaster()
        sub = broadcaster.subscribe("s1")
        assert broadcaster.subscriber_count("s1") == 1
        broadcaster.unsubscribe(sub)
        broadcaster.unsubscribe(sub)
        assert broadcaster.subscriber_count("s1") == 0
        assert broadcaster.session_count == 0

    def test_events_keep_publish_order(self) -> None:
        broadcaster = SessionBroadcaster()
        sub = broadcaster.subscribe("s1")
        broadcaster.deliver_local("s1", event(kind=RealtimeEventType.ITEM_CLAIMED))
        broadcaster.deliver_local("s1", event(kind=RealtimeEventType.ITEM_UNCLAIMED))
        assert sub.queue.get_nowait().type is RealtimeEventType.ITEM_CLAIMED
        assert sub.queue.get_nowait().type is RealtimeEventType.ITEM_UNCLAIMED

    def test_stalled_subscriber_is_dropped(self) -> None:
        broadcaster = SessionBroadcaster(queue_size=1)
        slow = broadcaster.subscribe("s1")
        fast = broadcaster.subscribe("s1")

        assert broadcaster.deliver_local("s1", event()) == 2
        fast.queue.get_nowait()
        assert broadcaster.deliver_local("s1", event()) == 1

        assert broadcaster.subscriber_count("s1") == 1
        assert slow.queue.qsize() == 1

    async def test_next_event_times_out(self) -> None:
        sub = SessionBroadcaster().subscribe("s1")
        with pytest.raises(asyncio.TimeoutError):
            await sub.next_event(timeout=0.01)

    async def test_close_sends_end_marker(self) -> None:
        broadcaster = SessionBroadcaster()
        sub = broadcaster.subscribe("s1")
        broadcaster.close()
        assert await sub.next_event(timeout=1) is None
        assert broadcaster.session_count == 0


class TestRelay:
    async def test_publish_goes_through_relay(self) -> None:
        relay = AsyncMock()
        broadcaster = SessionBroadcaster(relay=relay)
        sub = broadcaster.subscribe("s1")
        evt = event()

        await broadcaster.publish("s1", evt)

        relay.publish.assert_awaited_once_with("s1", evt)
        assert sub.queue.empty()

    async def test_redis_publish_uses_session_channel(self) -> None:
        redis = MagicMock()
        redis.publish = AsyncMock()
        relay = RedisBroadcastRelay(redis, SessionBroadcaster())

        await relay.publish("s1", event())

        channel, payload = redis.publish.await_args.args
        assert channel == "receipt-session:s1"
        assert RealtimeEvent.model_validate_json(payload).session_id == "s1"

    def test_incoming_message_is_delivered_locally(self) -> None:
        broadcaster = SessionBroadcaster()
        relay = RedisBroadcastRelay(MagicMock(), broadcaster)
        sub = broadcaster.subscribe("s1")

        relay.handle_message(channel_for("s1").encode(), event().model_dump_json().encode())

        assert sub.queue.get_nowait().member_id == "alice"

    def test_malformed_message_is_discarded(self) -> None:
        broadcaster = SessionBroadcaster()
        relay = RedisBroadcastRelay(MagicMock(), broadcaster)
        sub = broadcaster.subscribe("s1")

        relay.handle_message(f"{CHANNEL_PREFIX}s1", b"{not json")

        assert sub.queue.empty()

    async def test_listener_logs_and_resumes_after_connection_error(self, caplog) -> None:
        message = {
            "type": "pmessage",
            "channel": channel_for("s1"),
            "data": event().model_dump_json(),
        }
        calls = 0

        async def listen():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise ConnectionError("connection reset")
            yield message

        pubsub = MagicMock()
        pubsub.listen = listen
        redis = MagicMock()
        redis.pubsub.return_value = pubsub
        broadcaster = SessionBroadcaster()
        relay = RedisBroadcastRelay(redis, broadcaster, retry_seconds=0)
        sub = broadcaster.subscribe("s1")

        await asyncio.wait_for(relay._listen(), timeout=1)

        assert calls == 2
        assert sub.queue.get_nowait().session_id == "s1"
        assert "Redis relay listener failed" in caplog.text


def test_sse_frame_omits_empty_fields() -> None:
    frame = event().to_sse()
    assert frame.startswith("data: {")
    assert frame.endswith("\n\n")
    assert "expense_id" not in frame
