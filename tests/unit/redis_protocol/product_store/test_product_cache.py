import asyncio

import orjson
import pytest

from trade_enrichment.config import CacheSettings
from trade_enrichment.data_models import Product
from trade_enrichment.redis_protocol.product_store import (
    LookupSource,
    LookupStatus,
    ProductCache,
    ProductCacheMissError,
)

_DAY_SECONDS = 24 * 3600


@pytest.fixture
def cache(fake_redis, cache_settings):
    return ProductCache(fake_redis, cache_settings)


def _store(fake_redis, product: Product) -> None:
    fake_redis._data[f"product:{product.product_id}"] = orjson.dumps(
        {"product_id": product.product_id, "product_name": product.product_name}
    ).decode()


@pytest.mark.asyncio
async def test_write_one_stores_entry_and_releases_lease(cache, fake_redis):
    product = Product("1", "Bond A")

    written = await cache.write_one(product)

    assert written is True
    assert orjson.loads(fake_redis.dump_string("product:1")) == {"product_id": "1", "product_name": "Bond A"}
    assert fake_redis.ttls["product:1"] == _DAY_SECONDS
    assert fake_redis.lease_grants == ["lock:product:1"]
    assert fake_redis.lease_grant_ttls == [("lock:product:1", 5)]
    assert fake_redis.dump_string("lock:product:1") is None
    assert await cache.read_one("1") == product


@pytest.mark.asyncio
async def test_write_one_then_read_one_survives_shared_store_outage(cache, fake_redis):
    fake_redis.fail("get", "set", "delete")
    product = Product("1", "Bond A")

    written = await cache.write_one(product)

    assert written is False
    assert await cache.read_one("1") == product
    assert fake_redis.dump_string("product:1") is None


@pytest.mark.asyncio
async def test_write_one_releases_lease_when_entry_write_fails(fake_redis, cache_settings):
    class _FailingEntryWrites(type(fake_redis)):
        async def set(self, key, value, *, ex=None, nx=False):
            if key.startswith("product:"):
                raise OSError("socket closed")
            return await super().set(key, value, ex=ex, nx=nx)

    redis = _FailingEntryWrites()
    cache = ProductCache(redis, cache_settings)

    assert await cache.write_one(Product("1", "Bond A")) is False
    assert redis.dump_string("lock:product:1") is None
    assert await cache.read_one("1") == Product("1", "Bond A")


@pytest.mark.asyncio
async def test_write_one_skips_shared_tier_when_lease_is_held(cache, fake_redis):
    fake_redis._data["lock:product:1"] = "someone-else"

    written = await cache.write_one(Product("1", "Bond A"))

    assert written is False
    assert fake_redis.dump_string("product:1") is None
    assert fake_redis.dump_string("lock:product:1") == "someone-else"
    assert await cache.read_one("1") == Product("1", "Bond A")
    assert cache.stats.snapshot()["lease_contention"] == 1


@pytest.mark.asyncio
async def test_concurrent_writers_for_same_product_are_serialized(cache, fake_redis):
    results = await asyncio.gather(
        cache.write_one(Product("1", "Bond A")),
        cache.write_one(Product("1", "Bond A v2")),
    )

    assert sorted(results) == [False, True]
    assert fake_redis.lease_grants == ["lock:product:1"]
    assert fake_redis.lease_denials == ["lock:product:1"]
    assert [call for call in fake_redis.calls if call == ("set", "product:1")] == [("set", "product:1")]
    assert fake_redis.dump_string("lock:product:1") is None


@pytest.mark.asyncio
async def test_write_many_uses_bulk_lease_and_pipeline(cache, fake_redis, bond_products):
    written = await cache.write_many(bond_products)

    assert written == 3
    assert fake_redis.lease_grants == ["lock:product:bulk"]
    assert fake_redis.lease_grant_ttls == [("lock:product:bulk", 30)]
    assert fake_redis.keys_with_prefix("product:") == ["product:1", "product:2", "product:3"]
    assert fake_redis.dump_string("lock:product:bulk") is None
    assert cache.stats.snapshot()["shared_writes"] == 3


@pytest.mark.asyncio
async def test_write_many_with_busy_bulk_lease_still_mirrors_locally(cache, fake_redis, bond_products):
    fake_redis._data["lock:product:bulk"] = "someone-else"

    written = await cache.write_many(bond_products)

    assert written == 0
    assert fake_redis.keys_with_prefix("product:") == []
    assert [await cache.read_one(p.product_id) for p in bond_products] == bond_products


@pytest.mark.asyncio
async def test_write_many_with_store_outage_mirrors_locally(cache, fake_redis, bond_products):
    fake_redis.fail("execute")

    written = await cache.write_many(bond_products)

    assert written == 0
    assert fake_redis.dump_string("lock:product:bulk") is None
    assert await cache.read_one("2") == Product("2", "Bond B")


@pytest.mark.asyncio
async def test_write_many_empty_batch_is_a_no_op(cache, fake_redis):
    assert await cache.write_many([]) == 0
    assert fake_redis.calls == []


@pytest.mark.asyncio
async def test_read_one_prefers_local_mirror(cache, fake_redis):
    cache.local_mirror.put("1", Product("1", "Local"))
    _store(fake_redis, Product("1", "Shared"))

    result = await cache.lookup("1")

    assert result.product == Product("1", "Local")
    assert result.source is LookupSource.LOCAL
    assert fake_redis.calls == []


@pytest.mark.asyncio
async def test_read_one_populates_mirror_from_shared_store(cache, fake_redis):
    _store(fake_redis, Product("9", "Bond I"))

    first = await cache.lookup("9")
    fake_redis.fail("get")
    second = await cache.lookup("9")

    assert first.source is LookupSource.SHARED
    assert second.source is LookupSource.LOCAL
    assert second.product == Product("9", "Bond I")


@pytest.mark.asyncio
async def test_lookup_distinguishes_miss_from_transport_error(cache, fake_redis):
    missing = await cache.lookup("404")
    fake_redis.fail("get")
    broken = await cache.lookup("500")

    assert missing.status is LookupStatus.NOT_FOUND
    assert broken.status is LookupStatus.TRANSPORT_ERROR
    assert broken.error is fake_redis.failure
    assert await cache.read_one("500") is None
    snapshot = cache.stats.snapshot()
    assert snapshot["misses"] == 1
    assert snapshot["transport_errors"] == 2


@pytest.mark.asyncio
async def test_undecodable_payload_reads_as_transport_error(cache, fake_redis):
    fake_redis._data["product:1"] = "{not json"

    result = await cache.lookup("1")

    assert result.status is LookupStatus.TRANSPORT_ERROR
    assert await cache.read_one("1") is None


@pytest.mark.asyncio
async def test_read_one_with_retry_recovers_after_blip(fake_redis):
    cache = ProductCache(fake_redis, CacheSettings(max_retries=3, retry_delay_ms=0))
    _store(fake_redis, Product("1", "Bond A"))
    fake_redis.fail("get")
    attempts = 0
    original_get = fake_redis.get

    async def _flaky_get(key):
        nonlocal attempts
        attempts += 1
        if attempts == 3:
            fake_redis.recover()
        return await original_get(key)

    fake_redis.get = _flaky_get

    product = await cache.read_one_with_retry("1")

    assert product == Product("1", "Bond A")
    assert attempts == 3


@pytest.mark.asyncio
async def test_read_one_with_retry_gives_up_after_configured_attempts(fake_redis):
    cache = ProductCache(fake_redis, CacheSettings(max_retries=2, retry_delay_ms=0))

    with pytest.raises(ProductCacheMissError) as excinfo:
        await cache.read_one_with_retry("missing")

    assert excinfo.value.product_id == "missing"
    assert excinfo.value.attempts == 3
    assert [call for call in fake_redis.calls if call[0] == "get"] == [("get", "product:missing")] * 3


@pytest.mark.asyncio
async def test_invalidate_clears_both_tiers(cache, fake_redis):
    await cache.write_one(Product("1", "Bond A"))

    assert await cache.invalidate("1") is True

    assert fake_redis.dump_string("product:1") is None
    assert await cache.read_one("1") is None


@pytest.mark.asyncio
async def test_invalidate_swallows_store_errors(cache, fake_redis):
    cache.local_mirror.put("1", Product("1", "Bond A"))
    fake_redis.fail("delete")

    assert await cache.invalidate("1") is False
    assert "1" not in cache.local_mirror
