"""
Exception groupings for shared-store interactions.
"""

import asyncio
from typing import Tuple, Type

from redis.exceptions import RedisError

ExceptionTuple = Tuple[Type[BaseException], ...]

# Transport faults: redis-py errors plus generic timeout/OS failures from the socket layer.
REDIS_ERRORS: ExceptionTuple = (RedisError, asyncio.TimeoutError, OSError, RuntimeError)

# Payload coercion failures.
SERIALIZATION_ERRORS: ExceptionTuple = (TypeError, ValueError)
