from .config_resolver import ConfigResolver
from .version_manager import VersionManager, compare_versions, evaluate_compatibility
from .worker_orchestrator import WorkerCallbacks, WorkerOrchestrator

__all__ = [
    "ConfigResolver",
    "VersionManager",
    "compare_versions",
    "evaluate_compatibility",
    "WorkerCallbacks",
    "WorkerOrchestrator",
]
