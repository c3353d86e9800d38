"""
Product lookups and bulk loading through the product cache.

A missing product is a normal outcome: lookups always answer with a product,
substituting the "Missing Product Name" placeholder when neither cache tier
has the id.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Set

from trade_enrichment.config import CacheSettings
from trade_enrichment.data_models import Product
from trade_enrichment.redis_protocol.product_store import LookupStatus, ProductCache
from trade_enrichment.utils import RecordSource, aiterate

logger = logging.getLogger(__name__)


class ProductService:
    """Resolves products by id and loads product batches into the cache."""

    def __init__(self, cache: ProductCache, settings: Optional[CacheSettings] = None) -> None:
        self.cache = cache
        self.settings = settings or cache.settings

    async def get_by_id(self, product_id: str) -> Product:
        """Return the cached product, or the placeholder after a second read also misses."""
        if not product_id.strip():
            logger.warning("Product not found for blank ID: %r", product_id)
            return Product.missing(product_id)

        first = await self.cache.lookup(product_id)
        if first.product is not None:
            return first.product

        # The cache may have been filled between the first miss and here.
        second = await self.cache.lookup(product_id)
        if second.product is not None:
            return second.product

        if LookupStatus.TRANSPORT_ERROR in (first.status, second.status):
            logger.warning("Product not found for ID: %s (shared store unavailable)", product_id)
        else:
            logger.warning("Product not found for ID: %s", product_id)
        return Product.missing(product_id)

    async def get_by_ids(self, product_ids: RecordSource[str]) -> AsyncIterator[Product]:
        """
        Resolve every id, yielding one product per input id as lookups finish.

        At most ``lookup_concurrency`` lookups are in flight. Output order is
        completion order, not input order. Duplicate ids are looked up again.
        """
        limit = self.settings.lookup_concurrency
        pending: Set[asyncio.Task[Product]] = set()
        try:
            async for product_id in aiterate(product_ids):
                if len(pending) >= limit:
                    done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                    for task in done:
                        product = task.result()
                        logger.info("Product loaded: %s", product.product_name)
                        yield product
                pending.add(asyncio.create_task(self.get_by_id(product_id)))

            for next_done in asyncio.as_completed(pending):
                product = await next_done
                logger.info("Product loaded: %s", product.product_name)
                yield product
            pending = set()
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def get_by_ids_list(self, product_ids: RecordSource[str]) -> List[Product]:
        return [product async for product in self.get_by_ids(product_ids)]

    async def load_many(self, products: RecordSource[Product]) -> int:
        """
        Write every product into the cache in ``load_batch_size`` chunks.

        Completion means every write was attempted, not that Redis kept it.
        A fault raised by the input sequence is logged and re-raised after the
        products received so far have been written.

        Returns:
            Number of products handed to the cache.
        """
        batch_size = self.settings.load_batch_size
        batch: List[Product] = []
        total = 0
        try:
            async for product in aiterate(products):
                logger.debug("Processing product: %s", product.product_name)
                batch.append(product)
                if len(batch) >= batch_size:
                    await self.cache.write_many(batch)
                    total += len(batch)
                    batch = []
        except Exception as exc:
            logger.error("Error loading products into cache: %s", exc)
            raise
        finally:
            if batch:
                await self.cache.write_many(batch)
                total += len(batch)

        logger.info("All %d products have been loaded into cache", total)
        return total


__all__ = ["ProductService"]
