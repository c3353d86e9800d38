"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_str, reset_default_values
from .shared import (
    ApiSettings,
    CacheSettings,
    RedisSettings,
    get_api_settings,
    get_cache_settings,
    get_redis_settings,
)

__all__ = [
    "ApiSettings",
    "CacheSettings",
    "ConfigurationError",
    "RedisSettings",
    "env_bool",
    "env_float",
    "env_int",
    "env_str",
    "get_api_settings",
    "get_cache_settings",
    "get_redis_settings",
    "reset_default_values",
]
