# tests/test_system_stats.py

"""
Tests for process resource measurements.
"""

import time

from crawl_worker.utils.system_stats import collect_system_stats, get_cpu_usage_percent


def _burn_cpu(seconds: float) -> None:
    start = time.process_time()
    while time.process_time() - start < seconds:
        sum(i * i for i in range(1000))


class TestSystemStats:
    """Test cases for system stats collection."""

    def test_cpu_usage_reflects_work_since_last_call(self):
        get_cpu_usage_percent()

        readings = []
        for _ in range(3):
            _burn_cpu(0.2)
            readings.append(get_cpu_usage_percent())

        assert all(reading > 0.0 for reading in readings)

    def test_collect_system_stats(self, tmp_path):
        stats = collect_system_stats(str(tmp_path))

        assert stats.memory_usage_mb > 0
        assert stats.cpu_usage_percent >= 0.0
        assert stats.disk_usage_mb > 0
