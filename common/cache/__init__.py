# common/cache/__init__.py


from .cache_factory import CacheFactory, CacheType
from .cache_interface import CacheInterface, CacheStats, CacheStatus
from .in_memory_cache import InMemoryCache

__all__ = [
    "CacheInterface",
    "CacheStatus",
    "CacheStats",
    "InMemoryCache",
    "CacheFactory",
    "CacheType",
]
