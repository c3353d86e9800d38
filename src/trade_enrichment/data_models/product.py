"""Product reference record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from trade_enrichment.validation_guards import require_instance, require_non_empty_string

MISSING_PRODUCT_NAME = "Missing Product Name"


@dataclass(frozen=True)
class Product:
    """Immutable product identifier/name pair keyed by ``product_id``."""

    product_id: str
    product_name: str

    def __post_init__(self) -> None:
        require_instance(self.product_name, str, "product_name")
        if self.is_missing:
            # Placeholders echo whatever id was asked for, blank included.
            require_instance(self.product_id, str, "product_id")
        else:
            require_non_empty_string(self.product_id, "product_id")

    @classmethod
    def missing(cls, product_id: str) -> "Product":
        """Placeholder returned when no cached product exists for ``product_id``."""
        return cls(product_id=product_id, product_name=MISSING_PRODUCT_NAME)

    @property
    def is_missing(self) -> bool:
        return self.product_name == MISSING_PRODUCT_NAME

    def to_json(self) -> Dict[str, Any]:
        return {"productId": self.product_id, "productName": self.product_name}
