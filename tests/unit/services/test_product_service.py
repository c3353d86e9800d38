import asyncio
from unittest.mock import AsyncMock

import pytest

from trade_enrichment.config import CacheSettings
from trade_enrichment.data_models import MISSING_PRODUCT_NAME, Product
from trade_enrichment.redis_protocol.product_store import LookupResult, LookupSource, ProductCache
from trade_enrichment.services import ProductService


@pytest.fixture
def cache(fake_redis, cache_settings):
    return ProductCache(fake_redis, cache_settings)


@pytest.fixture
def service(cache, cache_settings):
    return ProductService(cache, cache_settings)


@pytest.mark.asyncio
async def test_get_by_id_returns_cached_product(service, cache):
    await cache.write_one(Product("1", "Bond A"))

    assert await service.get_by_id("1") == Product("1", "Bond A")


@pytest.mark.asyncio
async def test_get_by_id_falls_back_to_placeholder(service, fake_redis, caplog):
    product = await service.get_by_id("404")

    assert product == Product("404", MISSING_PRODUCT_NAME)
    assert [call for call in fake_redis.calls if call[0] == "get"] == [("get", "product:404")] * 2
    assert "Product not found for ID: 404" in caplog.text


@pytest.mark.asyncio
async def test_get_by_id_never_fails_on_store_outage(service, fake_redis):
    fake_redis.fail("get")

    assert await service.get_by_id("1") == Product.missing("1")


@pytest.mark.asyncio
async def test_get_by_id_second_read_catches_late_population():
    cache = AsyncMock(spec=ProductCache)
    cache.settings = CacheSettings()
    cache.lookup.side_effect = [
        LookupResult.not_found(),
        LookupResult.found(Product("1", "Bond A"), LookupSource.SHARED),
    ]

    product = await ProductService(cache).get_by_id("1")

    assert product == Product("1", "Bond A")
    assert cache.lookup.await_count == 2


@pytest.mark.asyncio
async def test_get_by_ids_yields_one_product_per_input_id(service, cache):
    await cache.write_many([Product("1", "Bond A"), Product("2", "Bond B")])

    products = await service.get_by_ids_list(["1", "2", "1", "9"])

    assert sorted((p.product_id, p.product_name) for p in products) == [
        ("1", "Bond A"),
        ("1", "Bond A"),
        ("2", "Bond B"),
        ("9", MISSING_PRODUCT_NAME),
    ]


@pytest.mark.asyncio
async def test_get_by_ids_bounds_in_flight_lookups(cache):
    service = ProductService(cache, CacheSettings(lookup_concurrency=2))
    in_flight = 0
    peak = 0

    async def _slow_get_by_id(product_id):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return Product(product_id, "x")

    service.get_by_id = _slow_get_by_id

    async def _ids():
        for index in range(7):
            yield str(index)

    products = [p async for p in service.get_by_ids(_ids())]

    assert sorted(p.product_id for p in products) == [str(i) for i in range(7)]
    assert peak == 2


@pytest.mark.asyncio
async def test_get_by_id_blank_id_returns_placeholder_without_lookup(service, fake_redis):
    product = await service.get_by_id(" ")

    assert product == Product.missing(" ")
    assert fake_redis.calls == []


@pytest.mark.asyncio
async def test_get_by_ids_closed_early_collects_cancelled_lookups(service):
    cancelled = []

    async def _get_by_id(product_id):
        if product_id == "fast":
            return Product(product_id, "Bond A")
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(product_id)
            raise

    service.get_by_id = _get_by_id
    products = service.get_by_ids(["fast", "slow-1", "slow-2"])

    assert await products.__anext__() == Product("fast", "Bond A")
    await products.aclose()

    assert sorted(cancelled) == ["slow-1", "slow-2"]


@pytest.mark.asyncio
async def test_load_many_writes_in_batches(service, cache, fake_redis, bond_products):
    cache.write_many = AsyncMock(wraps=cache.write_many)

    loaded = await service.load_many(bond_products)

    assert loaded == 3
    assert [len(call.args[0]) for call in cache.write_many.await_args_list] == [2, 1]
    assert fake_redis.keys_with_prefix("product:") == ["product:1", "product:2", "product:3"]
    assert await service.get_by_id("3") == Product("3", "Bond C")


@pytest.mark.asyncio
async def test_load_many_reports_upstream_failure_after_writing_received_products(service, cache):
    async def _products():
        yield Product("1", "Bond A")
        raise OSError("stream broken")

    with pytest.raises(OSError):
        await service.load_many(_products())

    assert await cache.read_one("1") == Product("1", "Bond A")
