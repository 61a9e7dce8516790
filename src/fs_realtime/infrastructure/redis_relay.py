"""RedisBroadcastRelay — cross-instance fan-out over Redis pub/sub.

Channel per session: `receipt-session:{session_id}`. A single pattern
subscription per process feeds SessionBroadcaster.deliver_local().
"""

import asyncio
import logging

import redis.asyncio as aioredis

from src.fs_realtime.application.broadcaster import SessionBroadcaster
from src.fs_realtime.application.schemas import RealtimeEvent

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "receipt-session:"


def channel_for(session_id: str) -> str:
    return f"{CHANNEL_PREFIX}{session_id}"


class RedisBroadcastRelay:
    def __init__(
        self,
        redis: aioredis.Redis,
        broadcaster: SessionBroadcaster,
        retry_seconds: float = 1.0,
    ) -> None:
        self._redis = redis
        self._broadcaster = broadcaster
        self._pubsub = redis.pubsub(ignore_subscribe_messages=True)
        self._retry_seconds = retry_seconds
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await self._pubsub.psubscribe(f"{CHANNEL_PREFIX}*")
        self._task = asyncio.create_task(self._listen(), name="redis-broadcast-relay")
        logger.info("Redis broadcast relay started")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._pubsub.aclose()
        logger.info("Redis broadcast relay stopped")

    async def publish(self, session_id: str, event: RealtimeEvent) -> None:
        await self._redis.publish(channel_for(session_id), event.model_dump_json())

    async def _listen(self) -> None:
        # PubSub re-issues its pattern subscriptions when it reconnects
        while True:
            try:
                async for message in self._pubsub.listen():
                    if message.get("type") != "pmessage":
                        continue
                    self.handle_message(message["channel"], message["data"])
                logger.info("Redis relay listener finished")
                return
            except Exception:
                logger.exception(
                    "Redis relay listener failed; retrying in %.1fs", self._retry_seconds
                )
                await asyncio.sleep(self._retry_seconds)

    def handle_message(self, channel: str | bytes, data: str | bytes) -> None:
        if isinstance(channel, bytes):
            channel = channel.decode()
        session_id = channel[len(CHANNEL_PREFIX):]
        try:
            event = RealtimeEvent.model_validate_json(data)
        except ValueError:
            logger.warning("Discarding malformed relay message on %s", channel)
            return
        self._broadcaster.deliver_local(session_id, event)
