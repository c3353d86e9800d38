"""
HTTP surface for product lookups and trade enrichment.

Raw CSV bodies are decoded line by line as they arrive; enriched trades are
streamed back as newline-delimited JSON in input order.
"""

import logging
from typing import Any, List

import orjson
from aiohttp import web

from trade_enrichment.data_models import Product
from trade_enrichment.parsing import aiter_products, aiter_trades
from trade_enrichment.redis_protocol.product_store import ProductCache
from trade_enrichment.services import ProductService, TradeEnrichmentService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
NDJSON_CONTENT_TYPE = "application/x-ndjson"
PRODUCT_NOT_FOUND_TEMPLATE = "Product not found for ID: {product_id}"

PRODUCT_CACHE_KEY = web.AppKey("product_cache", ProductCache)
PRODUCT_SERVICE_KEY = web.AppKey("product_service", ProductService)
ENRICHMENT_SERVICE_KEY = web.AppKey("enrichment_service", TradeEnrichmentService)

routes = web.RouteTableDef()


def _json_response(payload: Any, *, status: int = 200) -> web.Response:
    return web.json_response(payload, status=status, dumps=lambda value: orjson.dumps(value).decode("utf-8"))


def _parse_product_ids(raw: bytes) -> List[str]:
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise web.HTTPBadRequest(text=f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(item, str) and item.strip() for item in payload):
        raise web.HTTPBadRequest(text="Request body must be a JSON array of non-empty product ids")
    return payload


@routes.post(f"{API_PREFIX}/enrich")
async def enrich_trades(request: web.Request) -> web.StreamResponse:
    enrichment = request.app[ENRICHMENT_SERVICE_KEY]
    response = web.StreamResponse(headers={"Content-Type": NDJSON_CONTENT_TYPE})
    await response.prepare(request)
    async for trade in enrichment.enrich_all(aiter_trades(request.content)):
        await response.write(orjson.dumps(trade.to_json()) + b"\n")
    await response.write_eof()
    return response


@routes.get(f"{API_PREFIX}/product/{{product_id}}")
async def get_product_name(request: web.Request) -> web.Response:
    product_id = request.match_info["product_id"]
    if not product_id.strip():
        return web.Response(text=PRODUCT_NOT_FOUND_TEMPLATE.format(product_id=product_id))
    product = await request.app[PRODUCT_SERVICE_KEY].get_by_id(product_id)
    if product.is_missing:
        return web.Response(text=PRODUCT_NOT_FOUND_TEMPLATE.format(product_id=product_id))
    return web.Response(text=product.product_name)


@routes.delete(f"{API_PREFIX}/product/{{product_id}}")
async def invalidate_product(request: web.Request) -> web.Response:
    await request.app[PRODUCT_CACHE_KEY].invalidate(request.match_info["product_id"])
    return web.Response(status=204)


@routes.post(f"{API_PREFIX}/products")
async def get_products(request: web.Request) -> web.Response:
    product_ids = _parse_product_ids(await request.read())
    products = await request.app[PRODUCT_SERVICE_KEY].get_by_ids_list(product_ids)
    return _json_response([product.to_json() for product in products])


@routes.post(f"{API_PREFIX}/products/load")
async def load_products(request: web.Request) -> web.Response:
    products: List[Product] = [product async for product in aiter_products(request.content)]
    loaded = await request.app[PRODUCT_SERVICE_KEY].load_many(products)
    await request.app[ENRICHMENT_SERVICE_KEY].load_products(products)
    logger.info("Loaded %d product(s) from request", loaded)
    return _json_response({"loaded": loaded})


@routes.get(f"{API_PREFIX}/cache/stats")
async def cache_stats(request: web.Request) -> web.Response:
    return _json_response(request.app[PRODUCT_CACHE_KEY].stats.snapshot())


def create_app(
    cache: ProductCache,
    product_service: ProductService,
    enrichment_service: TradeEnrichmentService,
) -> web.Application:
    """Build the application around already-constructed service instances."""
    app = web.Application()
    app[PRODUCT_CACHE_KEY] = cache
    app[PRODUCT_SERVICE_KEY] = product_service
    app[ENRICHMENT_SERVICE_KEY] = enrichment_service
    app.add_routes(routes)
    return app


__all__ = [
    "API_PREFIX",
    "ENRICHMENT_SERVICE_KEY",
    "PRODUCT_CACHE_KEY",
    "PRODUCT_NOT_FOUND_TEMPLATE",
    "PRODUCT_SERVICE_KEY",
    "create_app",
]
