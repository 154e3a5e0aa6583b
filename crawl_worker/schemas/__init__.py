from .config_schemas import (
    ConfigSource,
    ConfigTemplate,
    CrawlerSettings,
    OutputSettings,
    ResolvedConfig,
    SelectorRule,
)
from .task_schemas import (
    CrawlTask,
    ExecutionResult,
    HistoryStatus,
    ResultError,
    ResultErrorCode,
    ServerVersionCheck,
    TaskStatus,
    VersionConstraints,
    VersionErrorCode,
    WorkerHeartbeat,
    WorkerRegistration,
)

__all__ = [
    "ConfigSource",
    "ConfigTemplate",
    "CrawlerSettings",
    "OutputSettings",
    "ResolvedConfig",
    "SelectorRule",
    "CrawlTask",
    "ExecutionResult",
    "HistoryStatus",
    "ResultError",
    "ResultErrorCode",
    "ServerVersionCheck",
    "TaskStatus",
    "VersionConstraints",
    "VersionErrorCode",
    "WorkerHeartbeat",
    "WorkerRegistration",
]
