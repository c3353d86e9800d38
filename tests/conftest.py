"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from trade_enrichment.config import CacheSettings
from trade_enrichment.data_models import Product, Trade


class FakeRedis:
    """In-memory Redis stand-in covering the string commands the product store uses."""

    def __init__(self, *, yield_on_io: bool = True):
        self._data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.yield_on_io = yield_on_io
        self.failing: set[str] = set()
        self.failure: Exception = RedisConnectionError("redis unavailable")
        self.calls: list[tuple[str, str]] = []
        self.lease_grants: list[str] = []
        self.lease_grant_ttls: list[tuple[str, int | None]] = []
        self.lease_denials: list[str] = []

    def fail(self, *operations: str, error: Exception | None = None) -> None:
        """Make the named operations raise until ``recover`` is called."""
        self.failing.update(operations)
        if error is not None:
            self.failure = error

    def recover(self) -> None:
        self.failing.clear()

    async def _io(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if self.yield_on_io:
            await asyncio.sleep(0)
        if operation in self.failing:
            raise self.failure

    async def get(self, key: str) -> str | None:
        await self._io("get", key)
        return self._data.get(key)

    async def set(self, key: str, value: str | bytes, *, ex: int | None = None, nx: bool = False) -> bool | None:
        await self._io("set", key)
        if nx and key in self._data:
            self.lease_denials.append(key)
            return None
        if nx:
            self.lease_grants.append(key)
            self.lease_grant_ttls.append((key, ex))
        self._data[key] = value if isinstance(value, str) else value.decode()
        self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        await self._io("delete", ",".join(keys))
        deleted = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    async def ping(self) -> bool:
        await self._io("ping", "")
        return True

    async def aclose(self) -> None:
        return None

    def pipeline(self, transaction: bool = True) -> "FakeRedisPipeline":
        return FakeRedisPipeline(self)

    def dump_string(self, key: str) -> str | None:
        """Read a value without recording a call (test helper)."""
        return self._data.get(key)

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return sorted(key for key in self._data if key.startswith(prefix))


class FakeRedisPipeline:
    """Buffers ``set`` commands until ``execute``; leaving the context discards the buffer."""

    def __init__(self, fake_redis: FakeRedis):
        self.fake_redis = fake_redis
        self.commands: list[tuple[str, Any, int | None]] = []

    def set(self, key: str, value: str, *, ex: int | None = None) -> "FakeRedisPipeline":
        self.commands.append((key, value, ex))
        return self

    async def execute(self) -> list[Any]:
        await self.fake_redis._io("execute", str(len(self.commands)))
        results = []
        for key, value, ex in self.commands:
            self.fake_redis._data[key] = value
            self.fake_redis.ttls[key] = ex
            results.append(True)
        self.commands.clear()
        return results

    async def __aenter__(self) -> "FakeRedisPipeline":
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.commands.clear()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide a fake Redis instance."""
    return FakeRedis()


@pytest.fixture
def cache_settings() -> CacheSettings:
    """Cache settings with no retry delay so retry tests run instantly."""
    return CacheSettings(retry_delay_ms=0, lookup_concurrency=4, load_batch_size=2)


@pytest.fixture
def bond_products() -> list[Product]:
    return [Product("1", "Bond A"), Product("2", "Bond B"), Product("3", "Bond C")]


@pytest.fixture
def usd_trade() -> Trade:
    return Trade(date=date(2023, 1, 1), product_id="4", currency="USD", price=Decimal("150.75"))
