from __future__ import annotations

"""Helpers for consuming sync or async record sources uniformly."""

from collections import abc
from typing import AsyncIterable, AsyncIterator, Iterable, TypeVar, Union

T = TypeVar("T")

RecordSource = Union[AsyncIterable[T], Iterable[T]]


async def aiterate(source: RecordSource[T]) -> AsyncIterator[T]:
    """Yield from ``source`` whether it is an async or a plain iterable."""
    if isinstance(source, abc.AsyncIterable):
        async for item in source:
            yield item
    elif isinstance(source, abc.Iterable):
        for item in source:
            yield item
    else:
        raise TypeError(f"Expected an iterable or async iterable, got {type(source)!r}")
