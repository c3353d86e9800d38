"""Small shared utilities."""

from .async_iteration import RecordSource, aiterate
from .concurrent_map import ConcurrentMap

__all__ = ["ConcurrentMap", "RecordSource", "aiterate"]
