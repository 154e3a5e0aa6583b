# interfaces/errors.py

from typing import Any, Dict, List, Optional


class WorkerRuntimeError(Exception):
    """Base class for crawl worker errors"""

    pass


class WorkerStartError(WorkerRuntimeError):
    """Raised when the worker cannot connect or register"""

    pass


class TaskServerError(WorkerRuntimeError):
    """Raised when a task server call fails after retries"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500 or self.status_code == 429


class VersionControlError(WorkerRuntimeError):
    """Raised when a git or dependency tooling command fails"""

    pass


class VersionSwitchError(WorkerRuntimeError):
    """Raised when a version switch fails; the previous state was restored"""

    def __init__(self, message: str, target_version: str, available_tags: Optional[List[str]] = None):
        super().__init__(message)
        self.target_version = target_version
        self.available_tags = available_tags or []


class VersionRestoreError(VersionSwitchError):
    """Raised when a failed switch could not be rolled back"""

    pass


class ConfigResolutionError(WorkerRuntimeError):
    """Raised when a task's execution config cannot be produced"""

    code = "CONFIG_INVALID"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigNotFoundError(ConfigResolutionError):
    """Raised when no template exists for an identifier or path"""

    code = "CONFIG_NOT_FOUND"


class ConfigValidationError(ConfigResolutionError):
    """Raised when a config violates one or more validation rules"""

    def __init__(self, errors: List[str], details: Optional[Dict[str, Any]] = None):
        message = "Config validation failed:\n" + "\n".join(f"- {e}" for e in errors)
        super().__init__(message, details)
        self.errors = errors


class CrawlEngineError(WorkerRuntimeError):
    """Raised when the crawl engine cannot be invoked at all"""

    pass
