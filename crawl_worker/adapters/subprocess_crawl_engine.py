# adapters/subprocess_crawl_engine.py

"""
Crawl engine adapter that runs an external command on a config file.
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.crawl_engine import CrawlEngine
from ..interfaces.errors import CrawlEngineError
from ..models.crawl import CrawlOutcome
from ..schemas.config_schemas import ResolvedConfig

logger = LoggerFactory.get_logger(
    name="crawl-engine", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)

RECORD_COUNT_PATTERN = re.compile(r"(\d+)\s*(records?|items?)", re.IGNORECASE)
OUTPUT_PATH_PATTERN = re.compile(r"output.*?:\s*(.+\.(?:json|csv|xlsx))", re.IGNORECASE)
EXECUTION_LOG_TAIL = 1000


def parse_engine_output(output: str) -> Dict[str, Any]:
    """
    Extract the record count and output path from crawl engine stdout.

    The last matching line wins for both values.
    """
    record_count: Optional[int] = None
    output_path: Optional[str] = None
    lines = output.split("\n")

    for line in lines:
        record_match = RECORD_COUNT_PATTERN.search(line)
        if record_match:
            record_count = int(record_match.group(1))
        path_match = OUTPUT_PATH_PATTERN.search(line)
        if path_match:
            output_path = path_match.group(1).strip()

    return {
        "record_count": record_count,
        "quality_score": 1.0 if record_count else 0.0,
        "output_path": output_path,
        "summary": {
            "output_lines": len(lines),
            "execution_log": output[-EXECUTION_LOG_TAIL:],
        },
    }


class SubprocessCrawlEngine(CrawlEngine):
    """
    Writes the resolved config to a temporary file and runs the crawl
    engine command on it. The temporary file is removed afterwards.
    """

    def __init__(
        self,
        command: Sequence[str],
        timeout: float = 300.0,
        temp_dir: str = ".temp",
        working_dir: str = ".",
    ):
        self.command = list(command)
        self.timeout = timeout
        self.temp_dir = Path(temp_dir)
        self.working_dir = Path(working_dir).resolve()

    def _build_command(self, config_path: Path) -> List[str]:
        return [part.replace("{config_path}", str(config_path)) for part in self.command]

    async def execute(self, task_id: str, config: ResolvedConfig) -> CrawlOutcome:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        config_path = (self.temp_dir / f"config-{task_id}.json").resolve()
        config_path.write_text(
            json.dumps(config.to_engine_payload(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

        try:
            return await self._run(task_id, self._build_command(config_path))
        finally:
            try:
                config_path.unlink()
            except OSError as e:
                logger.warning(f"⚠️ Failed to remove temp config {config_path}: {e}")

    async def _run(self, task_id: str, command: List[str]) -> CrawlOutcome:
        logger.info(f"🕷️ Running crawl engine for task {task_id}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(self.working_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CrawlEngineError(f"Cannot start crawl engine '{command[0]}': {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"⏰ Crawl engine timed out after {self.timeout}s for task {task_id}")
            return CrawlOutcome(
                success=False,
                timed_out=True,
                summary={"error": f"Timed out after {self.timeout}s"},
            )

        output = stdout.decode(errors="replace")
        if process.returncode != 0:
            error_output = stderr.decode(errors="replace") or output
            logger.error(
                f"❌ Crawl engine exited with code {process.returncode} for task {task_id}"
            )
            return CrawlOutcome(
                success=False,
                summary={
                    "exit_code": process.returncode,
                    "execution_log": error_output[-EXECUTION_LOG_TAIL:],
                },
            )

        parsed = parse_engine_output(output)
        logger.info(
            f"✅ Crawl engine finished for task {task_id}: "
            f"{parsed['record_count'] or 0} record(s)"
        )
        return CrawlOutcome(success=True, **parsed)
