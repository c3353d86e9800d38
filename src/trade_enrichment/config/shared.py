from __future__ import annotations

"""Settings dataclasses consumed by the cache, the services and the HTTP layer."""


from dataclasses import dataclass
from functools import lru_cache

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_str

DEFAULT_CACHE_TIMEOUT_HOURS = 24
DEFAULT_CACHE_MAX_RETRIES = 3
DEFAULT_CACHE_RETRY_DELAY_MS = 1000
DEFAULT_LOCK_TTL_SECONDS = 5
DEFAULT_BULK_LOCK_TTL_SECONDS = 30
DEFAULT_LOAD_BATCH_SIZE = 500
DEFAULT_LOOKUP_CONCURRENCY = 16


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive (got {value})")


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative (got {value})")


@dataclass(frozen=True)
class CacheSettings:
    """TTL, retry and lease policy for the product cache."""

    timeout_hours: int = DEFAULT_CACHE_TIMEOUT_HOURS
    max_retries: int = DEFAULT_CACHE_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_CACHE_RETRY_DELAY_MS
    lock_ttl_seconds: int = DEFAULT_LOCK_TTL_SECONDS
    bulk_lock_ttl_seconds: int = DEFAULT_BULK_LOCK_TTL_SECONDS
    load_batch_size: int = DEFAULT_LOAD_BATCH_SIZE
    lookup_concurrency: int = DEFAULT_LOOKUP_CONCURRENCY

    def __post_init__(self) -> None:
        _require_positive("cache timeout_hours", self.timeout_hours)
        _require_non_negative("cache max_retries", self.max_retries)
        _require_non_negative("cache retry_delay_ms", self.retry_delay_ms)
        _require_positive("cache lock_ttl_seconds", self.lock_ttl_seconds)
        _require_positive("cache bulk_lock_ttl_seconds", self.bulk_lock_ttl_seconds)
        _require_positive("cache load_batch_size", self.load_batch_size)
        _require_positive("lookup_concurrency", self.lookup_concurrency)

    @property
    def ttl_seconds(self) -> int:
        return self.timeout_hours * 3600

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0


@dataclass(frozen=True)
class RedisSettings:
    host: str
    port: int
    db: int
    password: str | None
    ssl: bool
    socket_timeout: float | None
    socket_connect_timeout: float | None


@dataclass(frozen=True)
class ApiSettings:
    host: str
    port: int


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    return CacheSettings(
        timeout_hours=env_int("CACHE_TIMEOUT_HOURS", or_value=DEFAULT_CACHE_TIMEOUT_HOURS),
        max_retries=env_int("CACHE_MAX_RETRIES", or_value=DEFAULT_CACHE_MAX_RETRIES),
        retry_delay_ms=env_int("CACHE_RETRY_DELAY_MS", or_value=DEFAULT_CACHE_RETRY_DELAY_MS),
        lock_ttl_seconds=env_int("CACHE_LOCK_TTL_SECONDS", or_value=DEFAULT_LOCK_TTL_SECONDS),
        bulk_lock_ttl_seconds=env_int("CACHE_BULK_LOCK_TTL_SECONDS", or_value=DEFAULT_BULK_LOCK_TTL_SECONDS),
        load_batch_size=env_int("CACHE_LOAD_BATCH_SIZE", or_value=DEFAULT_LOAD_BATCH_SIZE),
        lookup_concurrency=env_int("LOOKUP_CONCURRENCY", or_value=DEFAULT_LOOKUP_CONCURRENCY),
    )


@lru_cache(maxsize=1)
def get_redis_settings() -> RedisSettings:
    host = env_str("REDIS_HOST", or_value="localhost")
    port = env_int("REDIS_PORT", or_value=6379)
    db = env_int("REDIS_DB", or_value=0)
    if port is None or port <= 0:
        raise ConfigurationError(f"REDIS_PORT must be a positive integer (got {port})")
    if db is None or db < 0:
        raise ConfigurationError(f"REDIS_DB must be a non-negative integer (got {db})")

    return RedisSettings(
        host=host or "localhost",
        port=port,
        db=db,
        password=env_str("REDIS_PASSWORD"),
        ssl=bool(env_bool("REDIS_SSL", or_value=False)),
        socket_timeout=env_float("REDIS_SOCKET_TIMEOUT", or_value=5.0),
        socket_connect_timeout=env_float("REDIS_SOCKET_CONNECT_TIMEOUT", or_value=5.0),
    )


@lru_cache(maxsize=1)
def get_api_settings() -> ApiSettings:
    port = env_int("API_PORT", or_value=8080)
    if port is None or not 0 < port < 65536:
        raise ConfigurationError(f"API_PORT must be a valid TCP port (got {port})")
    return ApiSettings(host=env_str("API_HOST", or_value="0.0.0.0") or "0.0.0.0", port=port)


__all__ = [
    "ApiSettings",
    "CacheSettings",
    "RedisSettings",
    "get_api_settings",
    "get_cache_settings",
    "get_redis_settings",
]
