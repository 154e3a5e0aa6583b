from .crawl_engine import CrawlEngine
from .errors import (
    ConfigNotFoundError,
    ConfigResolutionError,
    ConfigValidationError,
    CrawlEngineError,
    TaskServerError,
    VersionControlError,
    VersionRestoreError,
    VersionSwitchError,
    WorkerRuntimeError,
    WorkerStartError,
)
from .task_server import TaskServerClient
from .version_control import VersionControlTooling

__all__ = [
    "CrawlEngine",
    "TaskServerClient",
    "VersionControlTooling",
    "WorkerRuntimeError",
    "WorkerStartError",
    "TaskServerError",
    "VersionControlError",
    "VersionSwitchError",
    "VersionRestoreError",
    "ConfigResolutionError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "CrawlEngineError",
]
