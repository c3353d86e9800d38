"""Trade record and its enriched form."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from trade_enrichment.validation_guards import (
    require_date,
    require_decimal,
    require_instance,
    require_non_empty_string,
    require_optional_instance,
)


@dataclass(frozen=True)
class Trade:
    """
    A single trade against a product.

    ``product_name`` is unset for raw trades decoded from CSV and is filled in
    exactly once by enrichment, which returns a new instance via
    :meth:`with_product_name`.
    """

    date: date
    product_id: str
    currency: str
    price: Decimal
    product_name: Optional[str] = None

    def __post_init__(self) -> None:
        require_date(self.date, "date")
        require_instance(self.product_id, str, "product_id")
        require_non_empty_string(self.currency, "currency")
        require_decimal(self.price, "price")
        require_optional_instance(self.product_name, str, "product_name")

    @property
    def is_enriched(self) -> bool:
        return self.product_name is not None

    def with_product_name(self, product_name: str) -> "Trade":
        return replace(self, product_name=product_name)

    def to_json(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "productId": self.product_id,
            "productName": self.product_name,
            "currency": self.currency,
            "price": str(self.price),
        }
