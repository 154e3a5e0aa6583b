"""
Crawl Worker Common Module

Shared utilities for the crawl worker runtime: logging and caching.

Usage:
    from common.logger import LoggerFactory
    from common.cache import CacheFactory
"""

__version__ = "0.1.0"

from .cache import CacheFactory, CacheType
from .logger import LoggerFactory, LoggerType, LogLevel

__all__ = [
    "__version__",
    "LoggerFactory",
    "LoggerType",
    "LogLevel",
    "CacheFactory",
    "CacheType",
]
