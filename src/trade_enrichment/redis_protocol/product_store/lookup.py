"""Outcome of a single product lookup and running cache counters."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ...data_models import Product


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"


class LookupSource(Enum):
    LOCAL = "local"
    SHARED = "shared"


@dataclass(frozen=True)
class LookupResult:
    """
    Found / NotFound / TransportError for one read.

    Callers that only care about the product use :attr:`product`; the status
    stays available for counters and logs.
    """

    status: LookupStatus
    product: Optional[Product] = None
    source: Optional[LookupSource] = None
    error: Optional[BaseException] = None

    @classmethod
    def found(cls, product: Product, source: LookupSource) -> "LookupResult":
        return cls(LookupStatus.FOUND, product=product, source=source)

    @classmethod
    def not_found(cls) -> "LookupResult":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def transport_error(cls, error: BaseException) -> "LookupResult":
        return cls(LookupStatus.TRANSPORT_ERROR, error=error)

    @property
    def is_found(self) -> bool:
        return self.status is LookupStatus.FOUND


class CacheStats:
    """Thread-safe counters for cache reads, writes and lease contention."""

    _FIELDS = (
        "local_hits",
        "shared_hits",
        "misses",
        "transport_errors",
        "lease_contention",
        "shared_writes",
        "invalidations",
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = dict.fromkeys(self._FIELDS, 0)

    def increment(self, name: str, amount: int = 1) -> None:
        if name not in self._counters:
            raise KeyError(f"Unknown cache counter: {name}")
        with self._lock:
            self._counters[name] += amount

    def record_lookup(self, result: LookupResult) -> None:
        if result.is_found:
            self.increment("local_hits" if result.source is LookupSource.LOCAL else "shared_hits")
        elif result.status is LookupStatus.NOT_FOUND:
            self.increment("misses")
        else:
            self.increment("transport_errors")

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)


__all__ = ["CacheStats", "LookupResult", "LookupSource", "LookupStatus"]
