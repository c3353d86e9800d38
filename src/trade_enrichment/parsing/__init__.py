"""Record decoding for product and trade CSV input."""

from .csv_records import (
    RecordDecodeError,
    aiter_products,
    aiter_trades,
    decode_product_line,
    decode_trade_line,
    decode_trade_row,
    iter_products,
    iter_trades,
    parse_products,
    parse_trades,
)

__all__ = [
    "RecordDecodeError",
    "aiter_products",
    "aiter_trades",
    "decode_product_line",
    "decode_trade_line",
    "decode_trade_row",
    "iter_products",
    "iter_trades",
    "parse_products",
    "parse_trades",
]
