"""Domain records flowing through the enrichment pipeline."""

from .product import MISSING_PRODUCT_NAME, Product
from .trade import Trade

__all__ = ["MISSING_PRODUCT_NAME", "Product", "Trade"]
