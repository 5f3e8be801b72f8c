"""Redis client lifecycle management."""

import redis.asyncio as redis

from chathub.core.settings import RedisConfig


async def init_redis(config: RedisConfig) -> redis.Redis:  # type: ignore[type-arg]
    """Open and verify the connection used to read session revocations."""
    client = redis.from_url(config.url, decode_responses=True)
    await client.ping()
    return client


async def close_redis(client: redis.Redis | None) -> None:  # type: ignore[type-arg]
    """Close the Redis connection."""
    if client is not None:
        await client.aclose()
