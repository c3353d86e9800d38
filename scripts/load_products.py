#!/usr/bin/env python3
"""Load a product CSV file into the shared product cache.

The first line of the file is a header. Malformed lines are logged and skipped.

Usage:
    python -m scripts.load_products products.csv [--batch-size 500]
"""

import argparse
import asyncio
import dataclasses
import logging
from pathlib import Path

from trade_enrichment.config import get_cache_settings
from trade_enrichment.logging_config import setup_logging
from trade_enrichment.parsing import iter_products
from trade_enrichment.redis_protocol.connection import close_client, create_redis_client
from trade_enrichment.redis_protocol.product_store import ProductCache
from trade_enrichment.services import ProductService

logger = logging.getLogger(__name__)


async def load_products(path: Path, batch_size: int | None = None) -> int:
    """Stream ``path`` into the cache.

    Returns:
        Number of products handed to the cache.
    """
    settings = get_cache_settings()
    if batch_size is not None:
        settings = dataclasses.replace(settings, load_batch_size=batch_size)

    redis = create_redis_client()
    try:
        service = ProductService(ProductCache(redis, settings), settings)
        with path.open(encoding="utf-8") as handle:
            return await service.load_many(iter_products(handle))
    finally:
        await close_client(redis)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Load a product CSV file into the product cache")
    parser.add_argument("path", type=Path, help="CSV file with a header line and id,name rows")
    parser.add_argument("--batch-size", type=int, default=None, help="Products per bulk write")
    args = parser.parse_args()

    setup_logging("load_products")
    loaded = await load_products(args.path, args.batch_size)
    logger.info("Loaded %d product(s) from %s", loaded, args.path)


if __name__ == "__main__":
    asyncio.run(main())
