# schemas/task_schemas.py

"""
Pydantic schemas exchanged with the task server.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.worker import VersionAction, WorkerStatus


class TaskStatus(str, Enum):
    """Crawl task lifecycle status"""

    PENDING = "pending"
    ASSIGNED = "assigned"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            TaskStatus.COMPLETED,
            TaskStatus.FAILED,
            TaskStatus.TIMEOUT,
            TaskStatus.CANCELLED,
        )


class HistoryStatus(str, Enum):
    """Execution outcome recorded in the task history"""

    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"
    EMPTY = "empty"
    TIMEOUT = "timeout"
    REJECTED = "rejected"


class ResultErrorCode(str, Enum):
    """Error codes reported with a failed execution"""

    VERSION_MISMATCH = "VERSION_MISMATCH"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"


class VersionErrorCode(str, Enum):
    """Version-specific error codes"""

    VERSION_MISMATCH = "VERSION_MISMATCH"
    VERSION_BLACKLISTED = "VERSION_BLACKLISTED"
    VERSION_SWITCH_FAILED = "VERSION_SWITCH_FAILED"


class VersionConstraints(BaseModel):
    """Version constraints attached to a task"""

    min_version: Optional[str] = None
    max_version: Optional[str] = None
    preferred_versions: List[str] = Field(default_factory=list)
    blacklist_versions: List[str] = Field(default_factory=list)


class CrawlTask(BaseModel):
    """A unit of crawl work claimed from the task server"""

    id: str = Field(..., description="Task identifier")
    symbol_code: str = Field(..., description="Symbol or subject to crawl")
    exchange_area: str = Field(..., description="Market region tag")
    data_type: str = Field(..., description="Data type tag")
    status: TaskStatus = Field(default=TaskStatus.ASSIGNED)
    priority: int = Field(default=5, ge=1, le=10, description="Task priority (1-10)")
    assigned_to: Optional[str] = Field(None, description="Worker holding the task")
    config_file_path: Optional[str] = Field(None, description="Explicit config path")
    config_identifier: Optional[str] = Field(None, description="Config template id")
    parameters: Dict[str, Any] = Field(
        default_factory=dict, description="Dynamic template parameters"
    )
    config_override: Dict[str, Any] = Field(
        default_factory=dict, description="Partial config merged over the template"
    )
    required_config_version: Optional[str] = Field(
        None, description="Exact worker version required by the task"
    )
    version_constraints: Optional[VersionConstraints] = None
    created_at: Optional[datetime] = None
    next_run_at: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class ResultError(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ExecutionResult(BaseModel):
    """Result record reported after a task ran"""

    task_id: str
    status: HistoryStatus
    worker_version: str
    config_version_used: Optional[str] = None
    crawled_from: Optional[datetime] = None
    crawled_to: Optional[datetime] = None
    records_fetched: Optional[int] = None
    records_saved: Optional[int] = None
    data_quality_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    execution_time_ms: int = 0
    memory_usage_mb: float = 0.0
    output_file_path: Optional[str] = None
    response_summary: Optional[Dict[str, Any]] = None
    error: Optional[ResultError] = None
    version_error: Optional[ResultError] = None


class WorkerHeartbeat(BaseModel):
    """Periodic load report"""

    current_load: int = 0
    memory_usage_mb: float = 0.0
    cpu_usage_percent: float = 0.0
    status: WorkerStatus = WorkerStatus.ACTIVE
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ServerVersionCheck(BaseModel):
    """Task server's opinion on worker/task compatibility"""

    compatible: bool
    current_version: str
    required_version: Optional[str] = None
    action: Optional[VersionAction] = None
    reason: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class WorkerRegistration(BaseModel):
    """Registration payload"""

    id: str
    name: str
    supported_regions: List[str]
    supported_data_types: List[str]
    max_concurrent_tasks: int = 3
    host_info: Dict[str, Any] = Field(default_factory=dict)
