"""
Key builders for the product store.

Entries live under ``product:<id>``; the matching lease under
``lock:product:<id>``, and the bulk-write lease under ``lock:product:bulk``.
"""

from dataclasses import dataclass

BULK_LEASE_SUFFIX = "bulk"


@dataclass(frozen=True)
class ProductKeyBuilder:
    """Builds Redis keys for product entries and their leases."""

    product_prefix: str = "product"
    lock_prefix: str = "lock:product"

    def product(self, product_id: str) -> str:
        return f"{self.product_prefix}:{product_id}"

    def lease(self, product_id: str) -> str:
        return f"{self.lock_prefix}:{product_id}"

    def bulk_lease(self) -> str:
        return f"{self.lock_prefix}:{BULK_LEASE_SUFFIX}"
