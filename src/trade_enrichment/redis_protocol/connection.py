"""
Redis client construction for the shared product store.
"""

import logging
from typing import Optional

import redis.asyncio

from trade_enrichment.config import RedisSettings, get_redis_settings

from .error_types import REDIS_ERRORS
from .typing import RedisClient, ensure_awaitable

logger = logging.getLogger(__name__)


def create_redis_client(settings: Optional[RedisSettings] = None) -> RedisClient:
    """Build an async client with ``decode_responses`` enabled; no connection is opened yet."""
    resolved = settings or get_redis_settings()
    return redis.asyncio.Redis(
        host=resolved.host,
        port=resolved.port,
        db=resolved.db,
        password=resolved.password,
        ssl=resolved.ssl,
        socket_timeout=resolved.socket_timeout,
        socket_connect_timeout=resolved.socket_connect_timeout,
        decode_responses=True,
    )


async def ping(client: RedisClient) -> bool:
    """Report whether the store answers; failures are logged, not raised."""
    try:
        return bool(await ensure_awaitable(client.ping()))
    except REDIS_ERRORS as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False


async def close_client(client: RedisClient) -> None:
    try:
        await client.aclose()
    except REDIS_ERRORS as exc:
        logger.warning("Error closing Redis client: %s", exc)


__all__ = ["close_client", "create_redis_client", "ping"]
