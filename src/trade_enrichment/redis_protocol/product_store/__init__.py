"""
Redis-backed product cache.

ProductCache composes the key builder, codec and lease so each concern can be
exercised on its own while sharing one Redis client.
"""

from .cache import ProductCache
from .codec import ProductCodec
from .errors import ProductCacheMissError, ProductCodecError, ProductNotCachedError, ProductStoreError
from .keys import ProductKeyBuilder
from .lease import ProductLease
from .lookup import CacheStats, LookupResult, LookupSource, LookupStatus

__all__ = [
    "CacheStats",
    "LookupResult",
    "LookupSource",
    "LookupStatus",
    "ProductCache",
    "ProductCacheMissError",
    "ProductCodec",
    "ProductCodecError",
    "ProductKeyBuilder",
    "ProductLease",
    "ProductNotCachedError",
    "ProductStoreError",
]
