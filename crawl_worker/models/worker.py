# models/worker.py

"""
Data models for worker state, versioning and statistics.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkerStatus(str, Enum):
    """Worker status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    BUSY = "busy"
    ERROR = "error"


class VersionAction(str, Enum):
    """Suggested action for an incompatible version."""

    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"
    SWITCH = "switch"


class VersionInfo(BaseModel):
    """Worker version as seen from git and the project manifest."""

    current: str
    git_tag: Optional[str] = None
    package_version: Optional[str] = None
    source: Literal["git", "package", "unknown"] = "unknown"
    consistent: bool = False

    model_config = ConfigDict(frozen=True)


class VersionCheckResult(BaseModel):
    """Outcome of a compatibility check."""

    compatible: bool
    current_version: str
    required_version: Optional[str] = None
    action: Optional[VersionAction] = None
    reason: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class BackupState(BaseModel):
    """Checkout state captured before a version switch."""

    branch: str
    commit: str
    version: str
    timestamp: datetime = Field(default_factory=utc_now)


class VersionSwitchRecord(BaseModel):
    """One entry of the switch history log."""

    from_version: str = Field(..., alias="from")
    to_version: str = Field(..., alias="to")
    timestamp: datetime = Field(default_factory=utc_now)
    success: bool = True

    model_config = ConfigDict(populate_by_name=True)


class WorkerError(BaseModel):
    """An error counted by the worker's error handler."""

    code: str
    message: str
    details: Optional[Any] = None
    timestamp: datetime = Field(default_factory=utc_now)
    source: Literal["version", "config", "network", "task", "system"] = "system"
    retryable: bool = False


class WorkerInfo(BaseModel):
    id: str
    name: str
    version: str
    uptime: float = 0.0
    status: WorkerStatus = WorkerStatus.INACTIVE


class TaskCounters(BaseModel):
    total: int = 0
    completed: int = 0
    failed: int = 0
    running: int = 0
    average_execution_time: float = 0.0


class SystemStats(BaseModel):
    memory_usage_mb: float = 0.0
    cpu_usage_percent: float = 0.0
    disk_usage_mb: float = 0.0


class VersionStats(BaseModel):
    current: str
    switches: int = 0
    last_switch: Optional[datetime] = None
    consistent_state: bool = True


class ErrorStats(BaseModel):
    total: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)
    recent: List[WorkerError] = Field(default_factory=list)


class WorkerStats(BaseModel):
    """Process-wide worker statistics."""

    worker: WorkerInfo
    tasks: TaskCounters = Field(default_factory=TaskCounters)
    system: SystemStats = Field(default_factory=SystemStats)
    version: VersionStats
    errors: ErrorStats = Field(default_factory=ErrorStats)
