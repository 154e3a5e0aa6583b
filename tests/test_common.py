# tests/test_common.py

"""
Tests for the shared cache and logger modules.
"""

import time

import pytest

from common.cache import CacheFactory, CacheType, InMemoryCache
from common.logger import LoggerFactory, LoggerType, LogLevel, PrintLogger, StandardLogger


class TestInMemoryCache:
    """Test cases for the LRU cache."""

    def test_least_recently_used_entry_is_evicted(self):
        cache = InMemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")

        cache.set("c", 3)

        assert cache.keys() == ["a", "c"]
        assert cache.get("b") is None
        assert cache.get_stats().evictions == 1

    def test_entries_expire(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(time, "monotonic", lambda: now[0])
        cache = InMemoryCache(default_ttl=10)
        cache.set("a", 1)
        cache.set("b", 2, ttl=60)

        now[0] += 30

        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.exists("a") is False

    def test_stats(self):
        cache = InMemoryCache()
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")
        cache.delete("a")

        stats = cache.get_stats()
        assert (stats.hits, stats.misses, stats.sets, stats.deletes) == (1, 1, 1, 1)
        assert stats.hit_rate == 0.5
        assert stats.size == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            InMemoryCache(max_size=0)


class TestCacheFactory:
    """Test cases for the cache factory."""

    def test_create_cache_returns_new_instance(self):
        cache = CacheFactory.create_cache(CacheType.MEMORY, max_size=3)

        assert isinstance(cache, InMemoryCache)
        assert cache is not CacheFactory.create_cache(CacheType.MEMORY)

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported cache type"):
            CacheFactory.create_cache("redis")


class TestLoggerFactory:
    """Test cases for the logger factory."""

    def test_get_logger_is_cached(self):
        logger = LoggerFactory.get_logger("test-cached")

        assert LoggerFactory.get_logger("test-cached") is logger
        assert isinstance(logger, StandardLogger)

    def test_set_global_level(self):
        logger = LoggerFactory.get_logger("test-global-level")

        LoggerFactory.set_global_level(LogLevel.ERROR)
        try:
            assert logger.level == LogLevel.ERROR
            assert not logger.is_enabled_for(LogLevel.WARNING)
        finally:
            LoggerFactory.set_global_level(LogLevel.INFO)

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "worker.log"
        logger = LoggerFactory.create_logger(
            "test-file", level=LogLevel.DEBUG, log_file=str(log_file)
        )

        logger.debug("🔍 written to file", task_id="task-1")

        assert "🔍 written to file | task_id=task-1" in log_file.read_text(encoding="utf-8")

    @pytest.mark.parametrize("value, expected", [("debug", LogLevel.DEBUG), ("Warning", LogLevel.WARNING)])
    def test_level_from_string(self, value, expected):
        assert LogLevel.from_string(value) == expected

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            LogLevel.from_string("verbose")


class TestPrintLogger:
    """Test cases for the print logger."""

    def test_respects_level(self, capsys):
        logger = LoggerFactory.create_logger("cli", logger_type=LoggerType.PRINT, level=LogLevel.INFO)

        logger.debug("hidden")
        logger.info("shown", count=2)

        output = capsys.readouterr().out
        assert isinstance(logger, PrintLogger)
        assert "hidden" not in output
        assert "INFO     cli: shown count=2" in output
