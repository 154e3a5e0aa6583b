# utils/system_stats.py

"""
Process resource measurements used in heartbeats and stats snapshots.
"""

import psutil

from ..models.worker import SystemStats

_process = psutil.Process()
# First non-blocking cpu_percent call on a Process always reports 0.0
_process.cpu_percent(interval=None)


def get_memory_usage_mb() -> float:
    """Get current process memory usage (RSS) in MB."""
    try:
        return round(_process.memory_info().rss / 1024 / 1024, 2)
    except psutil.Error:
        return 0.0


def get_cpu_usage_percent() -> float:
    # Non-blocking: measured since the previous call on the shared process
    try:
        return float(_process.cpu_percent(interval=None))
    except psutil.Error:
        return 0.0


def get_disk_usage_mb(path: str = ".") -> float:
    try:
        return round(psutil.disk_usage(path).used / 1024 / 1024, 2)
    except (psutil.Error, OSError):
        return 0.0


def collect_system_stats(path: str = ".") -> SystemStats:
    return SystemStats(
        memory_usage_mb=get_memory_usage_mb(),
        cpu_usage_percent=get_cpu_usage_percent(),
        disk_usage_mb=get_disk_usage_mb(path),
    )
