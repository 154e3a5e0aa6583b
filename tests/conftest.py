# tests/conftest.py

"""
Shared fakes and fixtures for the crawl worker tests.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from crawl_worker.interfaces.crawl_engine import CrawlEngine
from crawl_worker.interfaces.errors import VersionControlError
from crawl_worker.interfaces.task_server import TaskServerClient
from crawl_worker.interfaces.version_control import VersionControlTooling
from crawl_worker.models.crawl import CrawlOutcome
from crawl_worker.schemas.config_schemas import ResolvedConfig
from crawl_worker.schemas.task_schemas import (
    CrawlTask,
    ExecutionResult,
    ServerVersionCheck,
    TaskStatus,
    WorkerHeartbeat,
    WorkerRegistration,
)
from crawl_worker.services.config_resolver import ConfigResolver
from crawl_worker.services.version_manager import VersionManager, strip_version_prefix
from crawl_worker.services.worker_orchestrator import WorkerCallbacks, WorkerOrchestrator

MANIFEST_PATH = "crawl_worker/__init__.py"

SAMPLE_TEMPLATE: Dict[str, Any] = {
    "crawlerSettings": {
        "url": "https://finance.example.com/quote/${symbol}/eps",
        "waitTime": 500,
        "timeout": 30000,
        "retries": 2,
    },
    "selectors": {
        "eps": {"selector": "table.eps td", "multiple": True},
        "title": {"selector": "h1", "transform": "trim"},
    },
    "outputSettings": {"format": "json", "filename": "${symbolCode}-${dataType}"},
}


class FakeVersionControl(VersionControlTooling):
    """
    In-memory git checkout.

    Checking out a tag rewrites the manifest so the version manager sees
    the new version on disk, the same way a real checkout would.
    """

    def __init__(
        self,
        project_root: Path,
        tags: List[str],
        current_tag: str,
        branch: str = "main",
        commit: str = "0a1b2c3d",
    ):
        self.manifest = project_root / MANIFEST_PATH
        self.tags = list(tags)
        self.head_tag: Optional[str] = current_tag
        self.original_tag = current_tag
        self.branch = branch
        self.commit = commit
        self.calls: List[tuple] = []
        self.failing_refs: set = set()
        self.fail_fetch = False
        self.fail_reinstall = False
        self.checkout_delay = 0.0
        self._write_manifest(current_tag)

    def _write_manifest(self, tag: str) -> None:
        self.manifest.parent.mkdir(parents=True, exist_ok=True)
        self.manifest.write_text(f'__version__ = "{strip_version_prefix(tag)}"\n')

    async def fetch_tags(self) -> None:
        self.calls.append(("fetch_tags",))
        if self.fail_fetch:
            raise VersionControlError("fatal: unable to access origin")

    async def list_tags(self) -> List[str]:
        return list(self.tags)

    async def describe_latest_tag(self) -> Optional[str]:
        if self.head_tag is None:
            raise VersionControlError("fatal: No names found")
        return self.head_tag

    async def current_branch(self) -> str:
        return self.branch

    async def current_commit(self) -> str:
        return self.commit

    async def checkout(self, ref: str) -> None:
        self.calls.append(("checkout", ref))
        if self.checkout_delay:
            await asyncio.sleep(self.checkout_delay)
        if ref in self.failing_refs:
            raise VersionControlError(f"error: pathspec '{ref}' did not match")
        tag = ref[len("tags/") :] if ref.startswith("tags/") else self.original_tag
        self.head_tag = tag
        self._write_manifest(tag)

    async def reinstall_dependencies(self) -> None:
        self.calls.append(("reinstall_dependencies",))
        if self.fail_reinstall:
            raise VersionControlError("pip install failed")


class FakeTaskServer(TaskServerClient):
    """Task server double that records every call."""

    def __init__(self):
        self.connection_ok = True
        self.register_ok = True
        self.pending: List[CrawlTask] = []
        self.overfill = 0
        self.version_verdicts: Dict[str, ServerVersionCheck] = {}
        self.registrations: List[WorkerRegistration] = []
        self.task_requests: List[int] = []
        self.results: List[ExecutionResult] = []
        self.heartbeats: List[WorkerHeartbeat] = []
        self.status_updates: List[tuple] = []
        self.cancelled: List[str] = []
        self.request_error: Optional[Exception] = None

    async def test_connection(self) -> bool:
        return self.connection_ok

    async def register(self, registration: WorkerRegistration) -> bool:
        self.registrations.append(registration)
        return self.register_ok

    async def request_tasks(self, supported_regions, supported_data_types, worker_version, limit):
        self.task_requests.append(limit)
        if self.request_error:
            raise self.request_error
        batch = self.pending[: limit + self.overfill]
        self.pending = self.pending[len(batch) :]
        return batch

    async def check_version_compatibility(self, task_id, worker_version) -> ServerVersionCheck:
        verdict = self.version_verdicts.get(task_id)
        return verdict or ServerVersionCheck(compatible=True, current_version=worker_version)

    async def report_result(self, result: ExecutionResult) -> bool:
        self.results.append(result)
        return True

    async def send_heartbeat(self, heartbeat: WorkerHeartbeat) -> bool:
        self.heartbeats.append(heartbeat)
        return True

    async def update_task_status(self, task_id, status: TaskStatus, message=None) -> bool:
        self.status_updates.append((task_id, status))
        return True

    async def cancel_task(self, task_id, reason) -> bool:
        self.cancelled.append(task_id)
        return True

    async def close(self) -> None:
        pass


class FakeCrawlEngine(CrawlEngine):
    """Crawl engine double that can hold executions until released."""

    def __init__(self, outcome: Optional[CrawlOutcome] = None, blocking: bool = False):
        self.outcome = outcome or CrawlOutcome(
            success=True,
            record_count=12,
            quality_score=1.0,
            output_path="output/result.json",
            summary={"output_lines": 3},
        )
        self.gate = asyncio.Event()
        if not blocking:
            self.gate.set()
        self.executed: List[str] = []
        self.configs: Dict[str, ResolvedConfig] = {}
        self.active = 0
        self.max_active = 0
        self.stuck: set = set()

    async def execute(self, task_id: str, config: ResolvedConfig) -> CrawlOutcome:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.gate.wait()
            while task_id in self.stuck:
                await asyncio.sleep(0.01)
            self.executed.append(task_id)
            self.configs[task_id] = config
            return self.outcome
        finally:
            self.active -= 1

    def release(self) -> None:
        self.gate.set()


def make_task(task_id: str = "task-1", **overrides: Any) -> CrawlTask:
    data = {
        "id": task_id,
        "symbol_code": "2330",
        "exchange_area": "TW",
        "data_type": "eps",
    }
    data.update(overrides)
    return CrawlTask.model_validate(data)


def write_template(path: Path, template: Optional[Dict[str, Any]] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(template or SAMPLE_TEMPLATE), encoding="utf-8")
    return path


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_for():
    return _wait_for


@pytest.fixture
def version_control(tmp_path) -> FakeVersionControl:
    return FakeVersionControl(tmp_path, tags=["v1.0.0", "v1.1.0", "v2.0.0"], current_tag="v1.0.0")


@pytest.fixture
def version_manager(tmp_path, version_control) -> VersionManager:
    return VersionManager(
        tooling=version_control,
        project_root=str(tmp_path),
        version_cache_dir=".version-cache",
        manifest_path=MANIFEST_PATH,
        prefer_git_version=False,
    )


@pytest.fixture
def config_resolver(tmp_path) -> ConfigResolver:
    write_template(tmp_path / "config" / "templates" / "yahoo-finance-tw-eps.json")
    return ConfigResolver(project_root=str(tmp_path))


@pytest.fixture
def task_server() -> FakeTaskServer:
    return FakeTaskServer()


@pytest.fixture
def crawl_engine() -> FakeCrawlEngine:
    return FakeCrawlEngine()


@pytest.fixture
def make_orchestrator(task_server, version_manager, config_resolver, crawl_engine):
    def _make(**overrides: Any) -> WorkerOrchestrator:
        options: Dict[str, Any] = {
            "worker_id": "worker-test",
            "worker_name": "Test Worker",
            "max_concurrent": 3,
            "task_request_interval": 3600,
            "heartbeat_interval": 3600,
            "auto_restart_on_error": False,
            "drain_timeout": 2.0,
            "drain_poll_interval": 0.01,
            "callbacks": WorkerCallbacks(),
        }
        options.update(overrides)
        return WorkerOrchestrator(
            task_server=options.pop("task_server", task_server),
            version_manager=version_manager,
            config_resolver=config_resolver,
            crawl_engine=options.pop("crawl_engine", crawl_engine),
            **options,
        )

    return _make
