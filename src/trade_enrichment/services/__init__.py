"""Product lookup and trade enrichment services."""

from .product_service import ProductService
from .trade_enrichment import TradeEnrichmentService

__all__ = ["ProductService", "TradeEnrichmentService"]
