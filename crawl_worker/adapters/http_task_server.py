# adapters/http_task_server.py

"""
HTTP/JSON client for the task server.
"""

import time
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.errors import TaskServerError
from ..interfaces.task_server import TaskServerClient
from ..schemas.task_schemas import (
    CrawlTask,
    ExecutionResult,
    ServerVersionCheck,
    TaskStatus,
    WorkerHeartbeat,
    WorkerRegistration,
)

logger = LoggerFactory.get_logger(
    name="task-server-client", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

NO_TASKS_MESSAGES = ("no tasks available",)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, TaskServerError) and error.retryable


def _server_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class HttpTaskServerClient(TaskServerClient):
    """
    Task server client built on ``httpx.AsyncClient``.

    Transport errors, 5xx and 429 responses are retried with exponential
    backoff. Other 4xx responses fail immediately.
    """

    def __init__(
        self,
        server_url: str,
        worker_id: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        retry_max_delay: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            server_url: Task server base URL
            worker_id: Identifier used in worker-scoped paths
            api_key: Optional bearer token
            timeout: Per-request timeout in seconds
            retry_attempts: Retries after the first attempt
            retry_delay: Base backoff delay in seconds
            retry_max_delay: Cap for a single backoff delay
            transport: Custom transport, used by tests
        """
        self.server_url = server_url.rstrip("/")
        self.worker_id = worker_id
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.retry_max_delay = retry_max_delay

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=self.server_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"🔄 Retrying task server call in {delay:.1f}s "
            f"(attempt {retry_state.attempt_number}/{self.retry_attempts}): {error}"
        )

    async def _send(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        request_id = f"{self.worker_id}-{int(time.time() * 1000)}"
        logger.debug(f"🌐 API Request: {method} {path}")
        try:
            response = await self._client.request(
                method, path, json=payload, headers={"X-Request-ID": request_id}
            )
        except httpx.TransportError as e:
            raise TaskServerError(f"Network error: {e}") from e

        if response.status_code >= 400:
            raise TaskServerError(
                f"HTTP {response.status_code}: {_server_message(response)}",
                status_code=response.status_code,
            )
        return response

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            wait=wait_exponential(multiplier=self.retry_delay, max=self.retry_max_delay),
            stop=stop_after_attempt(self.retry_attempts + 1),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return await retrying(self._send, method, path, payload)

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def test_connection(self) -> bool:
        try:
            await self._client.get("/health")
            logger.info(f"✅ Task server reachable: {self.server_url}")
            return True
        except httpx.TransportError as e:
            logger.error(f"❌ Task server unreachable: {e}")
            return False

    async def register(self, registration: WorkerRegistration) -> bool:
        try:
            response = await self._request(
                "POST", "/crawler/workers/register", registration.model_dump(mode="json")
            )
            message = self._json(response).get("message", "OK")
            logger.info(f"✅ Worker registered: {message}")
            return True
        except TaskServerError as e:
            logger.error(f"❌ Worker registration failed: {e}")
            return False

    async def request_tasks(
        self,
        supported_regions: List[str],
        supported_data_types: List[str],
        worker_version: str,
        limit: int,
    ) -> List[CrawlTask]:
        payload = {
            "supported_regions": supported_regions,
            "supported_data_types": supported_data_types,
            "worker_version": worker_version,
            "limit": limit,
        }
        try:
            response = await self._request(
                "POST", f"/crawler/workers/{self.worker_id}/request-tasks", payload
            )
        except TaskServerError as e:
            if e.status_code == 404 or any(m in str(e).lower() for m in NO_TASKS_MESSAGES):
                logger.info("📋 No tasks available")
                return []
            logger.error(f"❌ Task request failed: {e}")
            raise

        body = self._json(response)
        if not body.get("success") or not body.get("tasks"):
            logger.info("📋 No tasks available")
            return []

        tasks = [CrawlTask.model_validate(task) for task in body["tasks"]]
        logger.info(f"📋 Received {len(tasks)} task(s)")
        return tasks

    async def check_version_compatibility(
        self, task_id: str, worker_version: str
    ) -> ServerVersionCheck:
        try:
            response = await self._request(
                "POST",
                "/crawler/tasks/version-check",
                {"task_id": task_id, "worker_version": worker_version},
            )
            return ServerVersionCheck.model_validate(self._json(response))
        except (TaskServerError, ValueError) as e:
            # An unanswered check is treated as incompatible
            logger.error(f"❌ Version check failed for task {task_id}: {e}")
            return ServerVersionCheck(
                compatible=False,
                current_version=worker_version,
                reason=f"Version check API failed: {e}",
            )

    async def report_result(self, result: ExecutionResult) -> bool:
        logger.info(f"📊 Reporting result: {result.task_id} ({result.status.value})")
        try:
            response = await self._request(
                "POST",
                f"/crawler/workers/{self.worker_id}/report-result",
                result.model_dump(mode="json", exclude_none=True),
            )
        except TaskServerError as e:
            logger.error(f"❌ Failed to report result for {result.task_id}: {e}")
            return False

        body = self._json(response)
        if body.get("success") is False:
            logger.error(
                f"❌ Result for {result.task_id} rejected: {body.get('message', 'Unknown error')}"
            )
            return False
        logger.info(f"✅ Result reported: {result.task_id}")
        return True

    async def send_heartbeat(self, heartbeat: WorkerHeartbeat) -> bool:
        try:
            response = await self._request(
                "PUT",
                f"/crawler/workers/{self.worker_id}/heartbeat",
                heartbeat.model_dump(mode="json"),
            )
        except TaskServerError as e:
            logger.warning(f"⚠️ Heartbeat failed: {e}")
            return False
        return self._json(response).get("success") is not False

    async def update_task_status(
        self, task_id: str, status: TaskStatus, message: Optional[str] = None
    ) -> bool:
        payload: Dict[str, Any] = {"status": status.value}
        if message:
            payload["message"] = message
        try:
            response = await self._request("PATCH", f"/tasks/{task_id}/status", payload)
        except TaskServerError as e:
            logger.warning(f"⚠️ Failed to update status of {task_id} to {status.value}: {e}")
            return False
        return self._json(response).get("success") is not False

    async def cancel_task(self, task_id: str, reason: str) -> bool:
        try:
            response = await self._request(
                "POST", f"/tasks/{task_id}/cancel", {"reason": reason}
            )
        except TaskServerError as e:
            logger.warning(f"⚠️ Failed to cancel task {task_id}: {e}")
            return False
        return self._json(response).get("success") is not False

    async def close(self) -> None:
        await self._client.aclose()
