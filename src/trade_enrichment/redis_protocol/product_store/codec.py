from __future__ import annotations

"""Serialisation of products for the shared store."""

from dataclasses import dataclass
from typing import Any, Dict, Union

import orjson

from ...data_models import Product
from ..error_types import SERIALIZATION_ERRORS
from .errors import ProductCodecError

JsonLike = Union[str, bytes, Dict[str, Any]]


def _ensure_mapping(payload: JsonLike) -> Dict[str, Any]:
    match payload:
        case dict():
            return payload
        case bytes() | str():
            try:
                decoded = orjson.loads(payload)
            except orjson.JSONDecodeError as exc:
                raise ProductCodecError("Product payload is not valid JSON") from exc
        case _:
            raise ProductCodecError(f"Unsupported payload type: {type(payload)!r}")

    if not isinstance(decoded, dict):
        raise ProductCodecError("Product payload must be a JSON object")
    return decoded


@dataclass(frozen=True)
class ProductCodec:
    """Encode and decode products as orjson documents."""

    def encode(self, product: Product) -> str:
        payload = {"product_id": product.product_id, "product_name": product.product_name}
        return orjson.dumps(payload).decode("utf-8")

    def decode(self, payload: JsonLike) -> Product:
        data = _ensure_mapping(payload)
        try:
            return Product(product_id=data["product_id"], product_name=data["product_name"])
        except KeyError as exc:
            raise ProductCodecError(f"Product payload missing field {exc.args[0]!r}") from exc
        except SERIALIZATION_ERRORS as exc:
            raise ProductCodecError(f"Invalid product payload: {exc}") from exc


__all__ = ["ProductCodec"]
