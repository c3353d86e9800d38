"""
Two-tier product cache: an in-process mirror in front of Redis.

Writes go through a per-key lease (or one bulk lease per batch) so that at most
one writer touches a shared entry at a time. Reads consult the local mirror
first and fall back to Redis. Any transport fault is logged and degraded:
writes still land in the mirror, reads report a miss.
"""

import logging
from typing import Dict, Iterable, Optional

from ...config import CacheSettings, get_cache_settings
from ...data_models import Product
from ...utils import ConcurrentMap
from ..error_types import REDIS_ERRORS
from ..retry import FixedDelayRetryPolicy, RetryContext, RetryExhaustedError, execute_with_retry
from ..typing import RedisClient, ensure_awaitable
from .codec import ProductCodec
from .errors import ProductCacheMissError, ProductCodecError, ProductNotCachedError
from .keys import ProductKeyBuilder
from .lease import ProductLease
from .lookup import CacheStats, LookupResult, LookupSource

logger = logging.getLogger(__name__)

STORE_FAULTS = REDIS_ERRORS + (ProductCodecError,)


class ProductCache:
    """Product cache shared by the product service and the HTTP layer."""

    def __init__(
        self,
        redis_client: RedisClient,
        settings: Optional[CacheSettings] = None,
        *,
        keys: Optional[ProductKeyBuilder] = None,
        codec: Optional[ProductCodec] = None,
        local_mirror: Optional[ConcurrentMap[str, Product]] = None,
        stats: Optional[CacheStats] = None,
    ) -> None:
        self.redis = redis_client
        self.settings = settings or get_cache_settings()
        self._keys = keys or ProductKeyBuilder()
        self._codec = codec or ProductCodec()
        self._local: ConcurrentMap[str, Product] = local_mirror if local_mirror is not None else ConcurrentMap()
        self.stats = stats or CacheStats()

    @property
    def local_mirror(self) -> ConcurrentMap[str, Product]:
        return self._local

    async def write_one(self, product: Product) -> bool:
        """
        Cache one product.

        The mirror is always updated. The shared entry is written only when the
        per-product lease is free; a held lease skips the shared write for this
        call without retrying.

        Returns:
            True if the shared entry was written.
        """
        product_id = product.product_id
        self._local.put(product_id, product)

        written = False
        lease = ProductLease(self.redis, self._keys.lease(product_id), self.settings.lock_ttl_seconds)
        try:
            async with lease.hold() as acquired:
                if not acquired:
                    self.stats.increment("lease_contention")
                    logger.warning("Lease busy for product %s; shared write skipped", product_id)
                    return False
                await ensure_awaitable(
                    self.redis.set(
                        self._keys.product(product_id),
                        self._codec.encode(product),
                        ex=self.settings.ttl_seconds,
                    )
                )
                written = True
                self.stats.increment("shared_writes")
                logger.debug("Cached product: %s", product_id)
        except REDIS_ERRORS:
            logger.error("Error caching product: %s", product_id, exc_info=True)
        return written

    async def write_many(self, products: Iterable[Product]) -> int:
        """
        Cache a batch under the single bulk lease.

        Duplicate ids collapse to the last occurrence. The whole batch is
        mirrored locally; if the bulk lease is held elsewhere the shared tier is
        skipped for the entire batch.

        Returns:
            Number of products written to the shared tier.
        """
        batch: Dict[str, Product] = {product.product_id: product for product in products}
        if not batch:
            return 0
        self._local.put_all(batch)

        written = 0
        lease = ProductLease(self.redis, self._keys.bulk_lease(), self.settings.bulk_lock_ttl_seconds)
        try:
            async with lease.hold() as acquired:
                if not acquired:
                    self.stats.increment("lease_contention")
                    logger.warning("Bulk lease busy; shared write skipped for %d product(s)", len(batch))
                    return 0
                async with self.redis.pipeline(transaction=False) as pipe:
                    for product_id, product in batch.items():
                        pipe.set(
                            self._keys.product(product_id),
                            self._codec.encode(product),
                            ex=self.settings.ttl_seconds,
                        )
                    await pipe.execute()
                written = len(batch)
                self.stats.increment("shared_writes", written)
                logger.debug("Bulk cached %d products", written)
        except REDIS_ERRORS:
            logger.error("Error in bulk caching of %d product(s)", len(batch), exc_info=True)
        return written

    async def lookup(self, product_id: str) -> LookupResult:
        """Read one product and report how the read ended."""
        result = await self._lookup(product_id)
        self.stats.record_lookup(result)
        return result

    async def _lookup(self, product_id: str) -> LookupResult:
        local = self._local.get(product_id)
        if local is not None:
            logger.debug("Product %s found in local cache", product_id)
            return LookupResult.found(local, LookupSource.LOCAL)

        try:
            payload = await ensure_awaitable(self.redis.get(self._keys.product(product_id)))
            if payload is None:
                return LookupResult.not_found()
            product = self._codec.decode(payload)
        except STORE_FAULTS as exc:
            logger.error("Error retrieving product from cache: %s", product_id, exc_info=True)
            return LookupResult.transport_error(exc)

        self._local.put(product_id, product)
        logger.debug("Product %s found in Redis cache", product_id)
        return LookupResult.found(product, LookupSource.SHARED)

    async def read_one(self, product_id: str) -> Optional[Product]:
        """Return the cached product or None; store faults count as a miss."""
        return (await self.lookup(product_id)).product

    async def read_one_with_retry(self, product_id: str) -> Product:
        """
        Read a product, retrying misses and faults with a fixed delay.

        Raises:
            ProductCacheMissError: When the first attempt and every retry came back empty.
        """
        policy = FixedDelayRetryPolicy(
            max_retries=self.settings.max_retries,
            delay_seconds=self.settings.retry_delay_seconds,
            retry_exceptions=(ProductNotCachedError,),
        )

        async def _attempt(attempt: int) -> Product:
            result = await self.lookup(product_id)
            if result.product is not None:
                return result.product
            raise ProductNotCachedError(f"{product_id}: {result.status.value} on attempt {attempt}") from result.error

        def _log_retry(context: RetryContext) -> None:
            logger.debug(
                "Product %s not available (attempt %s/%s); retrying in %.2fs",
                product_id,
                context.attempt,
                context.max_attempts,
                context.delay,
            )

        try:
            return await execute_with_retry(
                _attempt,
                policy=policy,
                logger=logger,
                context=f"Product lookup {product_id}",
                on_retry=_log_retry,
            )
        except RetryExhaustedError as exc:
            logger.error("Error in reactive cache access: %s", product_id)
            raise ProductCacheMissError(product_id, policy.max_attempts) from exc

    async def invalidate(self, product_id: str) -> bool:
        """
        Drop a product from both tiers.

        Returns:
            True if the shared entry delete went through; failures are only logged.
        """
        self._local.remove(product_id)
        self.stats.increment("invalidations")
        try:
            await ensure_awaitable(self.redis.delete(self._keys.product(product_id)))
        except REDIS_ERRORS:
            logger.error("Error invalidating cache for product: %s", product_id, exc_info=True)
            return False
        logger.debug("Invalidated cache for product: %s", product_id)
        return True


__all__ = ["ProductCache"]
