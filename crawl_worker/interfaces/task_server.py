# interfaces/task_server.py
"""
Defines the abstract interface for the task distribution server.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..schemas.task_schemas import (
    CrawlTask,
    ExecutionResult,
    ServerVersionCheck,
    TaskStatus,
    WorkerHeartbeat,
    WorkerRegistration,
)


class TaskServerClient(ABC):
    """
    Worker-side contract with the task server.

    Only ``request_tasks`` raises on failure. Every other call reports
    failure through its return value because the worker treats those calls
    as best-effort.
    """

    @abstractmethod
    async def test_connection(self) -> bool:
        """Check that the server is reachable."""
        pass

    @abstractmethod
    async def register(self, registration: WorkerRegistration) -> bool:
        """Register this worker and its capabilities."""
        pass

    @abstractmethod
    async def request_tasks(
        self,
        supported_regions: List[str],
        supported_data_types: List[str],
        worker_version: str,
        limit: int,
    ) -> List[CrawlTask]:
        """
        Claim up to ``limit`` tasks.

        Returns:
            List[CrawlTask]: Claimed tasks, empty when none are available

        Raises:
            TaskServerError: When the request fails for any other reason
        """
        pass

    @abstractmethod
    async def check_version_compatibility(
        self, task_id: str, worker_version: str
    ) -> ServerVersionCheck:
        """Ask the server whether this worker version may run the task."""
        pass

    @abstractmethod
    async def report_result(self, result: ExecutionResult) -> bool:
        pass

    @abstractmethod
    async def send_heartbeat(self, heartbeat: WorkerHeartbeat) -> bool:
        pass

    @abstractmethod
    async def update_task_status(
        self, task_id: str, status: TaskStatus, message: Optional[str] = None
    ) -> bool:
        pass

    @abstractmethod
    async def cancel_task(self, task_id: str, reason: str) -> bool:
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        pass
