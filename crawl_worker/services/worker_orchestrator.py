# services/worker_orchestrator.py

"""
Worker lifecycle: registration, heartbeats, task polling and execution.
"""

import asyncio
import os
import platform
import socket
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.crawl_engine import CrawlEngine
from ..interfaces.errors import (
    ConfigResolutionError,
    VersionRestoreError,
    VersionSwitchError,
    WorkerRuntimeError,
    WorkerStartError,
)
from ..interfaces.task_server import TaskServerClient
from ..models.crawl import CrawlOutcome
from ..models.worker import (
    VersionCheckResult,
    VersionStats,
    WorkerError,
    WorkerInfo,
    WorkerStats,
    WorkerStatus,
    utc_now,
)
from ..schemas.config_schemas import ResolvedConfig
from ..schemas.task_schemas import (
    CrawlTask,
    ExecutionResult,
    HistoryStatus,
    ResultError,
    ResultErrorCode,
    TaskStatus,
    VersionErrorCode,
    WorkerHeartbeat,
    WorkerRegistration,
)
from ..utils.system_stats import collect_system_stats, get_cpu_usage_percent, get_memory_usage_mb
from .config_resolver import ConfigResolver
from .version_manager import VersionManager, compare_versions

MAX_RECENT_ERRORS = 10

TaskCompletionCallback = Callable[[CrawlTask, ExecutionResult], Awaitable[None]]
ErrorCallback = Callable[[WorkerError], Awaitable[None]]
VersionSwitchCallback = Callable[[str, str], Awaitable[None]]
HeartbeatCallback = Callable[[WorkerHeartbeat], Awaitable[None]]

_ERROR_SOURCES = {
    ResultErrorCode.VERSION_MISMATCH.value: "version",
    ResultErrorCode.CONFIG_NOT_FOUND.value: "config",
    ResultErrorCode.CONFIG_INVALID.value: "config",
    ResultErrorCode.NETWORK_ERROR.value: "network",
}


@dataclass
class WorkerCallbacks:
    """Async handlers notified by the orchestrator. Failures are logged only."""

    on_task_completion: Optional[TaskCompletionCallback] = None
    on_error: Optional[ErrorCallback] = None
    on_version_switch: Optional[VersionSwitchCallback] = None
    on_heartbeat: Optional[HeartbeatCallback] = None


class WorkerOrchestrator:
    """
    Runs the worker against the task server.

    Two periodic jobs run on an ``AsyncIOScheduler`` while the worker is
    active: a heartbeat and a task poll. Claimed tasks execute as
    independent asyncio tasks, at most ``max_concurrent`` at a time.
    """

    def __init__(
        self,
        task_server: TaskServerClient,
        version_manager: VersionManager,
        config_resolver: ConfigResolver,
        crawl_engine: CrawlEngine,
        worker_id: str,
        worker_name: str = "Crawler Worker",
        supported_regions: Optional[List[str]] = None,
        supported_data_types: Optional[List[str]] = None,
        max_concurrent: int = 3,
        task_request_interval: float = 30.0,
        heartbeat_interval: float = 60.0,
        auto_version_switch: bool = True,
        auto_restart_on_error: bool = True,
        max_error_retries: int = 5,
        drain_timeout: float = 30.0,
        drain_poll_interval: float = 1.0,
        callbacks: Optional[WorkerCallbacks] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            task_server: Task server client
            version_manager: Version detection and switching
            config_resolver: Task config resolution
            crawl_engine: Executes resolved configs
            worker_id: Unique worker identifier
            worker_name: Human readable worker name
            supported_regions: Region tags requested from the server
            supported_data_types: Data type tags requested from the server
            max_concurrent: Upper bound on concurrently running tasks
            task_request_interval: Seconds between task polls
            heartbeat_interval: Seconds between heartbeats
            auto_version_switch: Switch versions when a task requires it
            auto_restart_on_error: Restart after ``max_error_retries`` errors
            max_error_retries: Error count that triggers a restart
            drain_timeout: Default seconds ``stop`` waits for running tasks
            drain_poll_interval: Seconds between drain checks
            callbacks: Optional event handlers
        """
        self.logger = LoggerFactory.get_logger(
            name="worker-orchestrator",
            logger_type=LoggerType.STANDARD,
            level=LogLevel.INFO,
        )

        self._task_server = task_server
        self._version_manager = version_manager
        self._config_resolver = config_resolver
        self._crawl_engine = crawl_engine

        self.worker_id = worker_id
        self.worker_name = worker_name
        self.supported_regions = supported_regions or ["TW", "US", "JP"]
        self.supported_data_types = supported_data_types or [
            "eps",
            "balance_sheet",
            "income_statement",
        ]
        self.max_concurrent = max_concurrent
        self.task_request_interval = task_request_interval
        self.heartbeat_interval = heartbeat_interval
        self.auto_version_switch = auto_version_switch
        self.auto_restart_on_error = auto_restart_on_error
        self.max_error_retries = max_error_retries
        self.drain_timeout = drain_timeout
        self.drain_poll_interval = drain_poll_interval
        self._callbacks = callbacks or WorkerCallbacks()

        self._status = WorkerStatus.INACTIVE
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running_tasks: Dict[str, CrawlTask] = {}
        self._inflight: Set[asyncio.Task] = set()
        self._restart_task: Optional[asyncio.Task] = None
        self._stop_requested = False
        self._error_count = 0
        self._started_at: Optional[float] = None
        self._previous_exception_handler: Optional[Callable[..., Any]] = None
        self._exception_handler_installed = False
        self._stats = WorkerStats(
            worker=WorkerInfo(id=worker_id, name=worker_name, version="unknown"),
            version=VersionStats(current="unknown"),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Connect, register and start the periodic jobs.

        Raises:
            WorkerStartError: When the server is unreachable or registration
                fails; the worker is left in the error state
        """
        if self._status == WorkerStatus.ACTIVE:
            self.logger.warning("⚠️ Worker already running")
            return

        self.logger.info(f"🚀 Starting worker: {self.worker_id}")
        try:
            if not await self._task_server.test_connection():
                raise WorkerStartError("Cannot connect to task server")

            version = await self._version_manager.get_current_version()
            registration = WorkerRegistration(
                id=self.worker_id,
                name=self.worker_name,
                supported_regions=self.supported_regions,
                supported_data_types=self.supported_data_types,
                max_concurrent_tasks=self.max_concurrent,
                host_info={
                    "hostname": socket.gethostname(),
                    "platform": platform.platform(),
                    "python_version": platform.python_version(),
                    "pid": os.getpid(),
                    "version": version,
                },
            )
            if not await self._task_server.register(registration):
                raise WorkerStartError("Worker registration failed")
        except WorkerStartError:
            self._status = WorkerStatus.ERROR
            raise
        except Exception as e:
            self._status = WorkerStatus.ERROR
            raise WorkerStartError(f"Worker start failed: {e}") from e

        self._stats.worker.version = version
        self._stats.version.current = version
        self._status = WorkerStatus.ACTIVE
        self._started_at = time.monotonic()
        self._install_exception_handler()
        self._start_scheduler()
        self.logger.info(f"✅ Worker started: {self.worker_id} ({version})")

    async def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop polling and heartbeats, then drain running tasks.

        Tasks still running after ``timeout`` seconds are cancelled on the
        server and dropped from tracking. Their engine processes are not
        interrupted.
        """
        self.logger.info(f"🛑 Stopping worker: {self.worker_id}")
        if self._restart_task is not None and asyncio.current_task() is not self._restart_task:
            self._stop_requested = True
        self._stop_scheduler()
        self._status = WorkerStatus.INACTIVE

        drain_timeout = self.drain_timeout if timeout is None else timeout
        if not await self.wait_until_idle(drain_timeout):
            remaining = list(self._running_tasks.keys())
            self.logger.warning(
                f"⚠️ Drain timed out, cancelling {len(remaining)} running task(s)"
            )
            for task_id in remaining:
                await self._task_server.cancel_task(task_id, "Worker shutdown")
            self._running_tasks.clear()

        self._restore_exception_handler()
        self.logger.info(f"✅ Worker stopped: {self.worker_id}")

    async def wait_until_idle(self, timeout: float) -> bool:
        """Wait until no task is tracked as running. Returns False on timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self._running_tasks:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(self.drain_poll_interval, remaining))
        return True

    def _start_scheduler(self) -> None:
        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._scheduler.add_listener(self._job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
        now = datetime.now(timezone.utc)
        self._scheduler.add_job(
            self.send_heartbeat,
            trigger=IntervalTrigger(seconds=self.heartbeat_interval),
            id="worker_heartbeat",
            name="Worker Heartbeat",
            max_instances=1,
            coalesce=True,
            next_run_time=now,
            replace_existing=True,
        )
        self._scheduler.add_job(
            self.poll_for_tasks,
            trigger=IntervalTrigger(seconds=self.task_request_interval),
            id="task_poll",
            name="Task Poll",
            max_instances=1,
            coalesce=True,
            next_run_time=now,
            replace_existing=True,
        )
        self._scheduler.start()
        self.logger.info(
            f"📅 Jobs scheduled: heartbeat every {self.heartbeat_interval}s, "
            f"poll every {self.task_request_interval}s"
        )

    def _stop_scheduler(self) -> None:
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None

    def _job_listener(self, event) -> None:
        if getattr(event, "exception", None):
            self.logger.error(f"📅 Scheduler job error: {event.exception}")
        else:
            self.logger.debug(f"📅 Scheduler job executed: {event.job_id}")

    def _install_exception_handler(self) -> None:
        if self._exception_handler_installed:
            return
        loop = asyncio.get_running_loop()
        self._previous_exception_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._handle_loop_exception)
        self._exception_handler_installed = True

    def _restore_exception_handler(self) -> None:
        if not self._exception_handler_installed:
            return
        asyncio.get_running_loop().set_exception_handler(self._previous_exception_handler)
        self._exception_handler_installed = False

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exception = context.get("exception")
        message = str(exception) if exception else context.get("message", "Unknown error")
        self.logger.error(f"💥 Uncaught exception: {message}")
        if not loop.is_closed():
            loop.create_task(
                self.handle_error(
                    WorkerError(
                        code="UNCAUGHT_EXCEPTION",
                        message=message,
                        details={"type": type(exception).__name__} if exception else None,
                        source="system",
                    )
                )
            )

    # ------------------------------------------------------------------
    # Periodic jobs
    # ------------------------------------------------------------------

    async def send_heartbeat(self) -> bool:
        """Report load and resource usage. Failures are logged and swallowed."""
        try:
            version = await self._version_manager.get_current_version()
            self._stats.version.current = version
            heartbeat = WorkerHeartbeat(
                current_load=len(self._running_tasks),
                memory_usage_mb=get_memory_usage_mb(),
                cpu_usage_percent=get_cpu_usage_percent(),
                status=self._reported_status(),
                metadata={
                    "version": version,
                    "uptime": self._uptime(),
                    "error_count": self._error_count,
                    "consistent_state": self._stats.version.consistent_state,
                },
            )
            sent = await self._task_server.send_heartbeat(heartbeat)
        except Exception as e:
            self.logger.warning(f"⚠️ Heartbeat failed: {e}")
            return False

        if self._callbacks.on_heartbeat:
            try:
                await self._callbacks.on_heartbeat(heartbeat)
            except Exception as e:
                self.logger.warning(f"⚠️ Heartbeat callback failed: {e}")
        return sent

    async def poll_for_tasks(self) -> int:
        """
        Claim as many tasks as there is free capacity for and start them.

        Returns:
            int: Number of tasks started
        """
        if self._status != WorkerStatus.ACTIVE:
            return 0

        capacity = self.max_concurrent - len(self._running_tasks)
        if capacity <= 0:
            self.logger.debug("⏳ At capacity, skipping task poll")
            return 0

        try:
            version = await self._version_manager.get_current_version()
            tasks = await self._task_server.request_tasks(
                supported_regions=self.supported_regions,
                supported_data_types=self.supported_data_types,
                worker_version=version,
                limit=capacity,
            )
        except Exception as e:
            self.logger.warning(f"⚠️ Task poll failed: {e}")
            await self.handle_error(
                WorkerError(
                    code="TASK_POLLING_FAILED",
                    message=str(e),
                    source="network",
                    retryable=True,
                )
            )
            return 0

        if not tasks:
            return 0

        # Capacity may have changed while the request was in flight
        admitted: List[CrawlTask] = []
        released: List[CrawlTask] = []
        for task in tasks:
            if task.id in self._running_tasks:
                continue
            if (
                self._status == WorkerStatus.ACTIVE
                and len(self._running_tasks) < self.max_concurrent
            ):
                self._admit(task)
                admitted.append(task)
            else:
                released.append(task)

        for task in admitted:
            self._spawn(task)

        if admitted:
            self.logger.info(f"📋 Started {len(admitted)} new task(s)")

        for task in released:
            self.logger.warning(f"⚠️ No capacity for task {task.id}, releasing it")
            await self._task_server.update_task_status(
                task.id, TaskStatus.PENDING, "Worker at capacity"
            )

        return len(admitted)

    def _admit(self, task: CrawlTask) -> None:
        self._running_tasks[task.id] = task.model_copy(update={"status": TaskStatus.RUNNING})
        self._stats.tasks.running = len(self._running_tasks)

    def _spawn(self, task: CrawlTask) -> None:
        future = asyncio.create_task(self._run_task(task), name=f"crawl-task-{task.id}")
        self._inflight.add(future)
        future.add_done_callback(self._inflight.discard)

    async def _run_task(self, task: CrawlTask) -> None:
        try:
            await self.execute_task(task)
        except Exception as e:
            self.logger.error(f"❌ Task {task.id} crashed: {e}")
            self._running_tasks.pop(task.id, None)
            await self.handle_error(
                WorkerError(code="TASK_EXECUTION_FAILED", message=str(e), source="task")
            )

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    async def execute_task(self, task: CrawlTask) -> ExecutionResult:
        """
        Run one task end to end and report its result.

        The task is tracked as running for the duration. Every failure is
        turned into a reported result; nothing is raised for task-level
        problems.

        Raises:
            WorkerRuntimeError: When the task is not yet tracked and the
                worker has no free capacity for it
        """
        if task.id not in self._running_tasks:
            if len(self._running_tasks) >= self.max_concurrent:
                raise WorkerRuntimeError(f"Worker at capacity, cannot run task {task.id}")
            self._admit(task)

        started = time.monotonic()
        crawled_from = utc_now()
        config: Optional[ResolvedConfig] = None
        outcome: Optional[CrawlOutcome] = None
        error: Optional[ResultError] = None
        version_error: Optional[ResultError] = None

        self.logger.info(f"📋 Executing task {task.id} ({task.symbol_code})")
        try:
            await self._task_server.update_task_status(task.id, TaskStatus.RUNNING)

            version_failure = await self._enforce_task_version(task)
            if version_failure is not None:
                status = HistoryStatus.REJECTED
                error, version_error = version_failure
            else:
                config = await self._config_resolver.resolve_task_config(task)
                outcome = await self._crawl_engine.execute(task.id, config)
                status, error = self._classify_outcome(outcome)
        except ConfigResolutionError as e:
            status = HistoryStatus.FAILED
            error = ResultError(code=e.code, message=str(e), details=e.details)
        except Exception as e:
            self.logger.error(f"❌ Task {task.id} failed: {e}")
            status = HistoryStatus.FAILED
            error = ResultError(
                code=ResultErrorCode.EXECUTION_ERROR.value,
                message=str(e),
                details={"type": type(e).__name__},
            )

        execution_time_ms = int((time.monotonic() - started) * 1000)
        crawled = outcome if outcome is not None and outcome.success else None
        record_count = (crawled.record_count or 0) if crawled else None
        result = ExecutionResult(
            task_id=task.id,
            status=status,
            worker_version=await self._version_manager.get_current_version(),
            config_version_used=config.source.version if config else None,
            crawled_from=crawled_from,
            crawled_to=utc_now(),
            records_fetched=record_count,
            records_saved=record_count,
            data_quality_score=crawled.quality_score if crawled else None,
            execution_time_ms=execution_time_ms,
            memory_usage_mb=get_memory_usage_mb(),
            output_file_path=outcome.output_path if outcome else None,
            response_summary=outcome.summary if outcome and outcome.summary else None,
            error=error,
            version_error=version_error,
        )

        self._running_tasks.pop(task.id, None)
        self._update_task_stats(error is None, execution_time_ms)

        if error is None:
            self.logger.info(f"✅ Task {task.id} finished: {status.value}")
        else:
            self.logger.error(f"❌ Task {task.id} finished: {status.value} [{error.code}]")

        await self._task_server.report_result(result)

        if error is not None:
            await self.handle_error(
                WorkerError(
                    code=error.code,
                    message=error.message,
                    details={"task_id": task.id},
                    source=_ERROR_SOURCES.get(error.code, "task"),
                    retryable=error.code == ResultErrorCode.TIMEOUT.value,
                )
            )

        if self._callbacks.on_task_completion:
            try:
                await self._callbacks.on_task_completion(task, result)
            except Exception as e:
                self.logger.warning(f"⚠️ Task completion callback failed: {e}")

        return result

    async def _check_task_version(self, task: CrawlTask) -> VersionCheckResult:
        try:
            local = await self._version_manager.check_version_compatibility(
                task.required_config_version, task.version_constraints
            )
            if not local.compatible:
                return local

            server = await self._task_server.check_version_compatibility(
                task.id, local.current_version
            )
            if not server.compatible:
                return VersionCheckResult(
                    compatible=False,
                    current_version=local.current_version,
                    required_version=server.required_version,
                    action=server.action,
                    reason=server.reason or "Server version check failed",
                )
            return local
        except Exception as e:
            self.logger.warning(f"⚠️ Version check failed for task {task.id}, assuming incompatible: {e}")
            return VersionCheckResult(
                compatible=False,
                current_version=self._stats.version.current,
                reason=f"Version check failed: {e}",
            )

    async def _enforce_task_version(
        self, task: CrawlTask
    ) -> Optional[Tuple[ResultError, ResultError]]:
        """Return (error, version_error) when the task cannot run on this version."""
        check = await self._check_task_version(task)
        if check.compatible:
            return None

        if "blacklist_versions" in check.details:
            version_code = VersionErrorCode.VERSION_BLACKLISTED
        else:
            version_code = VersionErrorCode.VERSION_MISMATCH
        reason = check.reason

        if self.auto_version_switch and check.required_version:
            self.logger.info(
                f"🔄 Task {task.id} needs {check.required_version}, switching ({check.action})"
            )
            if await self.switch_version(check.required_version):
                return None
            version_code = VersionErrorCode.VERSION_SWITCH_FAILED
            reason = f"Version switch to {check.required_version} failed: {check.reason}"
        elif self.auto_version_switch:
            reason = f"No target version to switch to: {check.reason}"

        details = {
            "current_version": check.current_version,
            "required_version": check.required_version,
            "action": check.action.value if check.action else None,
        }
        return (
            ResultError(
                code=ResultErrorCode.VERSION_MISMATCH.value, message=reason, details=details
            ),
            ResultError(code=version_code.value, message=reason, details=details),
        )

    @staticmethod
    def _classify_outcome(outcome: CrawlOutcome) -> Tuple[HistoryStatus, Optional[ResultError]]:
        if outcome.timed_out:
            return HistoryStatus.TIMEOUT, ResultError(
                code=ResultErrorCode.TIMEOUT.value,
                message="Crawl engine timed out",
                details=outcome.summary or None,
            )
        if not outcome.success:
            return HistoryStatus.FAILED, ResultError(
                code=ResultErrorCode.EXECUTION_ERROR.value,
                message="Crawl engine reported failure",
                details=outcome.summary or None,
            )
        if outcome.record_count == 0:
            return HistoryStatus.EMPTY, None
        return HistoryStatus.SUCCESS, None

    def _update_task_stats(self, succeeded: bool, execution_time_ms: int) -> None:
        tasks = self._stats.tasks
        tasks.total += 1
        if succeeded:
            tasks.completed += 1
        else:
            tasks.failed += 1
        tasks.average_execution_time = (
            tasks.average_execution_time * (tasks.total - 1) + execution_time_ms
        ) / tasks.total
        tasks.running = len(self._running_tasks)

    # ------------------------------------------------------------------
    # Versioning
    # ------------------------------------------------------------------

    async def switch_version(self, target_version: str) -> bool:
        """
        Switch the worker to ``target_version``.

        Returns:
            bool: True when the worker now runs ``target_version``
        """
        old_version = await self._version_manager.get_current_version()
        self.logger.info(f"🔄 Switching version: {old_version} → {target_version}")
        try:
            info = await self._version_manager.switch_version(target_version)
        except VersionRestoreError as e:
            self._stats.version.consistent_state = False
            await self.handle_error(
                WorkerError(
                    code="VERSION_RESTORE_FAILED",
                    message=str(e),
                    details={"target_version": target_version},
                    source="version",
                )
            )
            return False
        except VersionSwitchError as e:
            await self.handle_error(
                WorkerError(
                    code=VersionErrorCode.VERSION_SWITCH_FAILED.value,
                    message=str(e),
                    details={
                        "target_version": target_version,
                        "available_tags": e.available_tags,
                    },
                    source="version",
                )
            )
            return False

        self._stats.worker.version = info.current
        self._stats.version.current = info.current
        if compare_versions(old_version, info.current) != 0:
            self._stats.version.switches += 1
            self._stats.version.last_switch = utc_now()
            if self._callbacks.on_version_switch:
                try:
                    await self._callbacks.on_version_switch(old_version, info.current)
                except Exception as e:
                    self.logger.warning(f"⚠️ Version switch callback failed: {e}")

        self.logger.info(f"✅ Version switch complete: {old_version} → {info.current}")
        return True

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    async def handle_error(self, error: WorkerError) -> None:
        """Count an error and restart the worker once the threshold is hit."""
        self._error_count += 1
        errors = self._stats.errors
        errors.total += 1
        errors.by_type[error.code] = errors.by_type.get(error.code, 0) + 1
        errors.recent.append(error)
        errors.recent = errors.recent[-MAX_RECENT_ERRORS:]

        if self._callbacks.on_error:
            try:
                await self._callbacks.on_error(error)
            except Exception as e:
                self.logger.warning(f"⚠️ Error callback failed: {e}")

        if (
            self.auto_restart_on_error
            and self._error_count >= self.max_error_retries
            and self._status == WorkerStatus.ACTIVE
            and self._restart_task is None
        ):
            self.logger.warning(f"❌ Too many errors ({self._error_count}), restarting worker")
            self._restart_task = asyncio.create_task(self._restart())

    async def _restart(self) -> None:
        try:
            await self.stop()
            if not self._stop_requested:
                await self.start()
                self._error_count = 0
            if self._stop_requested:
                # stop() arrived mid-restart, it wins
                if self._status == WorkerStatus.ACTIVE:
                    await self.stop()
                self.logger.info("🛑 Stop requested during restart, worker left stopped")
                return
            self.logger.info("✅ Worker restarted")
        except Exception as e:
            self.logger.critical(f"❌ Worker restart failed: {e}")
            self._status = WorkerStatus.ERROR
        finally:
            self._restart_task = None
            self._stop_requested = False

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def set_callbacks(
        self,
        on_task_completion: Optional[TaskCompletionCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_version_switch: Optional[VersionSwitchCallback] = None,
        on_heartbeat: Optional[HeartbeatCallback] = None,
    ) -> None:
        if on_task_completion:
            self._callbacks.on_task_completion = on_task_completion
        if on_error:
            self._callbacks.on_error = on_error
        if on_version_switch:
            self._callbacks.on_version_switch = on_version_switch
        if on_heartbeat:
            self._callbacks.on_heartbeat = on_heartbeat

    def get_status(self) -> WorkerStatus:
        return self._status

    def get_running_tasks(self) -> List[CrawlTask]:
        return [task.model_copy(deep=True) for task in self._running_tasks.values()]

    def get_stats(self) -> WorkerStats:
        """Return a snapshot of the worker statistics."""
        stats = self._stats.model_copy(deep=True)
        stats.worker.status = self._status
        stats.worker.uptime = self._uptime()
        stats.tasks.running = len(self._running_tasks)
        stats.system = collect_system_stats()
        return stats

    @property
    def error_count(self) -> int:
        return self._error_count

    def _uptime(self) -> float:
        return time.monotonic() - self._started_at if self._started_at else 0.0

    def _reported_status(self) -> WorkerStatus:
        if self._status == WorkerStatus.ACTIVE and len(self._running_tasks) >= self.max_concurrent:
            return WorkerStatus.BUSY
        return self._status
