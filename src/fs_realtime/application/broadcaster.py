"""SessionBroadcaster — per receipt session fan-out to live subscribers.

One instance per process, created in the app lifespan and stored on
app.state. Each subscriber owns a bounded asyncio.Queue; a subscriber whose
queue is full is treated as dead and dropped, so a stalled client can never
block a publisher. With a relay attached, publish() goes through Redis
pub/sub and every instance (this one included) delivers locally when the
message comes back.
"""

import asyncio
import logging
from typing import Protocol

from src.fs_realtime.application.schemas import RealtimeEvent

logger = logging.getLogger(__name__)


class BroadcastRelay(Protocol):
    async def publish(self, session_id: str, event: RealtimeEvent) -> None: ...


class Subscription:
    """One live stream. `None` on the queue means the broadcaster shut down."""

    def __init__(self, session_id: str, queue_size: int) -> None:
        self.session_id = session_id
        self.queue: asyncio.Queue[RealtimeEvent | None] = asyncio.Queue(maxsize=queue_size)

    async def next_event(self, timeout: float | None = None) -> RealtimeEvent | None:
        """Wait for the next event; raises asyncio.TimeoutError after `timeout`."""
        if timeout is None:
            return await self.queue.get()
        return await asyncio.wait_for(self.queue.get(), timeout)


class SessionBroadcaster:
    def __init__(self, queue_size: int = 100, relay: BroadcastRelay | None = None) -> None:
        self._queue_size = queue_size
        self._relay = relay
        self._subscribers: dict[str, set[Subscription]] = {}

    def attach_relay(self, relay: BroadcastRelay | None) -> None:
        self._relay = relay

    def subscribe(self, session_id: str) -> Subscription:
        sub = Subscription(session_id, self._queue_size)
        self._subscribers.setdefault(session_id, set()).add(sub)
        logger.debug(
            "Subscriber added: session=%s total=%d",
            session_id, len(self._subscribers[session_id]),
        )
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        """Idempotent; prunes the session entry once its last subscriber leaves."""
        subs = self._subscribers.get(sub.session_id)
        if subs is None:
            return
        subs.discard(sub)
        if not subs:
            del self._subscribers[sub.session_id]
        logger.debug("Subscriber removed: session=%s", sub.session_id)

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))

    @property
    def session_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, session_id: str, event: RealtimeEvent) -> None:
        if self._relay is not None:
            await self._relay.publish(session_id, event)
            return
        self.deliver_local(session_id, event)

    def deliver_local(self, session_id: str, event: RealtimeEvent) -> int:
        """Push to this process's subscribers; returns how many received it."""
        subs = self._subscribers.get(session_id)
        if not subs:
            return 0
        delivered = 0
        dead: list[Subscription] = []
        for sub in subs:
            try:
                sub.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                dead.append(sub)
        for sub in dead:
            logger.warning(
                "Dropping stalled subscriber: session=%s event=%s", session_id, event.type.value
            )
            self.unsubscribe(sub)
        return delivered

    def close(self) -> None:
        """Wake every subscriber with the end-of-stream marker and forget them."""
        for subs in self._subscribers.values():
            for sub in subs:
                try:
                    sub.queue.put_nowait(None)
                except asyncio.QueueFull:
                    pass
        self._subscribers.clear()
