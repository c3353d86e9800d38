"""
Trade enrichment against an in-memory product projection.

The projection is a productId -> Product view rebuilt wholesale by each
``load_products`` call. It starts empty; every load replaces it, no merge
across batches. A load interrupted mid-stream leaves the previous projection
untouched.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, Optional

from trade_enrichment.data_models import MISSING_PRODUCT_NAME, Product, Trade
from trade_enrichment.utils import ConcurrentMap, RecordSource, aiterate

logger = logging.getLogger(__name__)


class TradeEnrichmentService:
    """Owns the product projection and joins trades against it."""

    def __init__(self, projection: Optional[ConcurrentMap[str, Product]] = None) -> None:
        self._projection: ConcurrentMap[str, Product] = projection if projection is not None else ConcurrentMap()

    @property
    def projection(self) -> Dict[str, Product]:
        return self._projection.snapshot()

    async def load_products(self, products: RecordSource[Product]) -> Dict[str, Product]:
        """Drain ``products`` into a fresh mapping, then swap it in as the projection."""
        loaded: Dict[str, Product] = {}
        async for product in aiterate(products):
            loaded[product.product_id] = product

        self._projection.replace_all(loaded)
        logger.info("Product projection updated with %d product(s)", len(loaded))
        return dict(loaded)

    def enrich_one(self, trade: Trade) -> Trade:
        """Return a copy of ``trade`` carrying the product name, or the placeholder on a miss."""
        product = self._projection.get(trade.product_id)
        if product is None:
            logger.warning("Product not found for productId: %s", trade.product_id)
            return trade.with_product_name(MISSING_PRODUCT_NAME)
        return trade.with_product_name(product.product_name)

    async def enrich_all(self, trades: RecordSource[Trade]) -> AsyncIterator[Trade]:
        """Enrich each trade as it arrives, in input order; source faults propagate."""
        count = 0
        async for trade in aiterate(trades):
            enriched = self.enrich_one(trade)
            count += 1
            logger.debug("Enriched trade: %s", enriched)
            yield enriched
        logger.info("Enriched %d trade(s)", count)


__all__ = ["TradeEnrichmentService"]
