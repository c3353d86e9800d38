"""Exception types for the product store package."""


class ProductStoreError(RuntimeError):
    """Base error for product store operations."""


class ProductCodecError(ProductStoreError):
    """Raised when a stored product payload cannot be decoded."""


class ProductCacheMissError(ProductStoreError):
    """Raised by the retrying read when no attempt produced a product."""

    def __init__(self, product_id: str, attempts: int) -> None:
        super().__init__(f"Product {product_id!r} not available after {attempts} attempt(s)")
        self.product_id = product_id
        self.attempts = attempts


class ProductNotCachedError(ProductStoreError):
    """Signals a single read attempt that yielded no product."""
