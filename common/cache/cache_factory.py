# common/cache/cache_factory.py

"""
Factory for cache instances.
"""

from enum import Enum
from typing import Optional

from .cache_interface import CacheInterface
from .in_memory_cache import InMemoryCache


class CacheType(str, Enum):
    """Available cache backends"""

    MEMORY = "memory"


class CacheFactory:
    """Creates cache backends by type."""

    @staticmethod
    def create_cache(
        cache_type: CacheType = CacheType.MEMORY,
        max_size: int = 1000,
        default_ttl: Optional[int] = None,
    ) -> CacheInterface:
        if cache_type == CacheType.MEMORY:
            return InMemoryCache(max_size=max_size, default_ttl=default_ttl)
        raise ValueError(f"Unsupported cache type: {cache_type}")
