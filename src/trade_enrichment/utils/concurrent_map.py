"""Lock-guarded mapping shared between concurrent lookup and write paths."""

from __future__ import annotations

import threading
from typing import Dict, Generic, Hashable, Iterator, Mapping, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ConcurrentMap(Generic[K, V]):
    """
    Mapping safe to read and write from several threads or tasks.

    Every operation holds the internal lock only for the dictionary operation
    itself, so callers never need external locking. :meth:`replace_all` swaps
    the whole content in one step; readers observe either the old or the new
    content, never a mix.
    """

    def __init__(self, initial: Optional[Mapping[K, V]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[K, V] = dict(initial or {})

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value

    def put_all(self, values: Mapping[K, V]) -> None:
        with self._lock:
            self._data.update(values)

    def remove(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.pop(key, None)

    def replace_all(self, values: Mapping[K, V]) -> None:
        replacement = dict(values)
        with self._lock:
            self._data = replacement

    def snapshot(self) -> Dict[K, V]:
        with self._lock:
            return dict(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self.snapshot())


__all__ = ["ConcurrentMap"]
