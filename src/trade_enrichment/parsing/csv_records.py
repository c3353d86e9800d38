"""
Decoding of delimited product and trade text into typed records.

The first line of every input is a header and is skipped. A malformed line is
logged and dropped; it never ends the sequence. Errors raised by the line
source itself (I/O failures, cancelled request bodies) propagate unchanged.
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, Optional, Sequence, TypeVar, Union

from trade_enrichment.data_models import Product, Trade

logger = logging.getLogger(__name__)

TRADE_DATE_FORMAT = "%Y%m%d"
TRADE_COLUMN_COUNT = 4

_RecordT = TypeVar("_RecordT")
RawLine = Union[str, bytes]


class RecordDecodeError(ValueError):
    """Raised when a single line cannot be turned into a record."""


def _normalize_line(raw: RawLine) -> str:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RecordDecodeError(f"Line is not valid UTF-8: {raw!r}") from exc
    return raw.rstrip("\r\n")


def decode_product_line(line: str) -> Product:
    """Decode ``id,name[,...]``; both fields must be non-empty after trimming."""
    fields = line.split(",")
    if len(fields) < 2:
        raise RecordDecodeError(f"Invalid product line: {line!r}")
    product_id = fields[0].strip()
    product_name = fields[1].strip()
    if not product_id or not product_name:
        raise RecordDecodeError(f"Invalid product line: {line!r}")
    return Product(product_id=product_id, product_name=product_name)


def decode_trade_row(row: Sequence[str]) -> Trade:
    """Decode ``date,productId,currency,price`` with ``date`` as ``yyyyMMdd``."""
    if len(row) < TRADE_COLUMN_COUNT:
        raise RecordDecodeError(f"Trade row has {len(row)} column(s), expected {TRADE_COLUMN_COUNT}: {row!r}")
    raw_date, product_id, currency, raw_price = (value.strip() for value in row[:TRADE_COLUMN_COUNT])
    try:
        trade_date = datetime.strptime(raw_date, TRADE_DATE_FORMAT).date()
        price = Decimal(raw_price)
        return Trade(date=trade_date, product_id=product_id, currency=currency, price=price)
    except (ValueError, TypeError, InvalidOperation) as exc:
        raise RecordDecodeError(f"Failed to parse trade row: {','.join(row)}") from exc


def decode_trade_line(line: str) -> Trade:
    try:
        row = next(csv.reader([line]))
    except (csv.Error, StopIteration) as exc:
        raise RecordDecodeError(f"Malformed CSV trade line: {line!r}") from exc
    return decode_trade_row(row)


def _decode_or_drop(raw: RawLine, decoder: Callable[[str], _RecordT], kind: str) -> Optional[_RecordT]:
    try:
        line = _normalize_line(raw)
        if not line.strip():
            return None
        return decoder(line)
    except RecordDecodeError as exc:
        logger.error("Skipping %s line: %s", kind, exc)
        return None


def _iter_records(lines: Iterable[RawLine], decoder: Callable[[str], _RecordT], kind: str) -> Iterator[_RecordT]:
    iterator = iter(lines)
    if next(iterator, None) is None:
        return
    for raw in iterator:
        record = _decode_or_drop(raw, decoder, kind)
        if record is not None:
            yield record


async def _aiter_records(
    lines: AsyncIterable[RawLine], decoder: Callable[[str], _RecordT], kind: str
) -> AsyncIterator[_RecordT]:
    header_seen = False
    async for raw in lines:
        if not header_seen:
            header_seen = True
            continue
        record = _decode_or_drop(raw, decoder, kind)
        if record is not None:
            yield record


def iter_products(lines: Iterable[RawLine]) -> Iterator[Product]:
    return _iter_records(lines, decode_product_line, "product")


def iter_trades(lines: Iterable[RawLine]) -> Iterator[Trade]:
    return _iter_records(lines, decode_trade_line, "trade")


def aiter_products(lines: AsyncIterable[RawLine]) -> AsyncIterator[Product]:
    return _aiter_records(lines, decode_product_line, "product")


def aiter_trades(lines: AsyncIterable[RawLine]) -> AsyncIterator[Trade]:
    return _aiter_records(lines, decode_trade_line, "trade")


def parse_products(text: str) -> list[Product]:
    """Decode a complete product document held in memory."""
    return list(iter_products(text.splitlines()))


def parse_trades(text: str) -> list[Trade]:
    """Decode a complete trade document held in memory."""
    return list(iter_trades(text.splitlines()))


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
