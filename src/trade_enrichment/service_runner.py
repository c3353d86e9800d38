from __future__ import annotations

"""Process entry point: wires configuration, Redis, services and the HTTP server."""

import asyncio
import logging
import signal
from contextlib import suppress
from dataclasses import dataclass
from typing import Optional

from aiohttp import web

from .api import create_app
from .config import ApiSettings, CacheSettings, get_api_settings, get_cache_settings
from .logging_config import setup_logging
from .redis_protocol.connection import close_client, create_redis_client, ping
from .redis_protocol.product_store import ProductCache
from .redis_protocol.typing import RedisClient
from .services import ProductService, TradeEnrichmentService

SERVICE_NAME = "trade_enrichment"

logger = logging.getLogger(__name__)


@dataclass
class ServiceComponents:
    """One instance of each collaborator, owned by the running process."""

    redis: RedisClient
    cache: ProductCache
    product_service: ProductService
    enrichment_service: TradeEnrichmentService


def build_components(redis_client: RedisClient, cache_settings: Optional[CacheSettings] = None) -> ServiceComponents:
    settings = cache_settings or get_cache_settings()
    cache = ProductCache(redis_client, settings)
    return ServiceComponents(
        redis=redis_client,
        cache=cache,
        product_service=ProductService(cache, settings),
        enrichment_service=TradeEnrichmentService(),
    )


def build_app(components: ServiceComponents) -> web.Application:
    app = create_app(components.cache, components.product_service, components.enrichment_service)

    async def _close_redis(_app: web.Application) -> None:
        await close_client(components.redis)

    app.on_cleanup.append(_close_redis)
    return app


async def serve(api_settings: Optional[ApiSettings] = None) -> None:
    """Run the HTTP server until SIGINT/SIGTERM."""
    settings = api_settings or get_api_settings()
    components = build_components(create_redis_client())
    if not await ping(components.redis):
        logger.warning("Redis is unreachable at startup; serving from the local mirror only")

    runner = web.AppRunner(build_app(components))
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    logger.info("Trade enrichment service listening on %s:%s", settings.host, settings.port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down trade enrichment service")
        await runner.cleanup()


def main() -> None:
    setup_logging(SERVICE_NAME)
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("%s service interrupted by user", SERVICE_NAME)


__all__ = ["ServiceComponents", "build_app", "build_components", "main", "serve"]
