from .crawl import CrawlOutcome
from .worker import (
    BackupState,
    ErrorStats,
    SystemStats,
    TaskCounters,
    VersionAction,
    VersionCheckResult,
    VersionInfo,
    VersionStats,
    VersionSwitchRecord,
    WorkerError,
    WorkerInfo,
    WorkerStats,
    WorkerStatus,
)

__all__ = [
    "CrawlOutcome",
    "BackupState",
    "ErrorStats",
    "SystemStats",
    "TaskCounters",
    "VersionAction",
    "VersionCheckResult",
    "VersionInfo",
    "VersionStats",
    "VersionSwitchRecord",
    "WorkerError",
    "WorkerInfo",
    "WorkerStats",
    "WorkerStatus",
]
