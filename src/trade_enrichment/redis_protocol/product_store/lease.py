"""
Short-lived write leases held in the shared store.

A lease is ``SET <key> <owner> NX EX <ttl>``. It only excludes other writers
of the same key; readers are never blocked. A holder that dies is recovered by
the TTL, so exclusion holds only while the writer finishes inside that TTL.
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..typing import RedisClient, ensure_awaitable

logger = logging.getLogger(__name__)


def _owner_token() -> str:
    return f"{os.getpid()}:{uuid.uuid4().hex}"


class ProductLease:
    """Redis lease on one product key (or the bulk pseudo-key)."""

    def __init__(self, redis_client: RedisClient, lease_key: str, ttl_seconds: int) -> None:
        self.redis_client = redis_client
        self.lease_key = lease_key
        self.ttl_seconds = ttl_seconds
        self.owner = _owner_token()
        self._acquired = False

    @property
    def acquired(self) -> bool:
        return self._acquired

    async def acquire(self) -> bool:
        """Try once to take the lease. Returns False when another writer holds it; transport faults propagate."""
        result = await ensure_awaitable(
            self.redis_client.set(self.lease_key, self.owner, ex=self.ttl_seconds, nx=True)
        )
        self._acquired = bool(result)
        if self._acquired:
            logger.debug("Acquired lease %s (ttl=%ss)", self.lease_key, self.ttl_seconds)
        else:
            logger.debug("Lease %s is held by another writer", self.lease_key)
        return self._acquired

    async def release(self) -> None:
        """Drop the lease if we still own it. Calling it again, or without holding it, does nothing."""
        if not self._acquired:
            return
        self._acquired = False

        current = await ensure_awaitable(self.redis_client.get(self.lease_key))
        if current != self.owner:
            logger.warning("Lease %s lapsed before release; leaving it to its current holder", self.lease_key)
            return
        await ensure_awaitable(self.redis_client.delete(self.lease_key))
        logger.debug("Released lease %s", self.lease_key)

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        """Yield whether the lease was taken; release runs on every exit path."""
        acquired = await self.acquire()
        try:
            yield acquired
        finally:
            await self.release()


__all__ = ["ProductLease"]
