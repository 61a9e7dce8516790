"""Redis connection for the broadcast relay (BROADCAST_BACKEND=redis).

Claims, sessions and balances all live in PostgreSQL; Redis only carries
pub/sub traffic between app instances, so nothing here is durable.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Process-wide client, created on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            # long-lived pub/sub connection: detect dead sockets between messages
            health_check_interval=30,
            client_name=f"{settings.APP_NAME.lower()}-relay",
        )
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
