# adapters/git_version_control.py

"""
Git and pip tooling driven through asyncio subprocesses.
"""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.errors import VersionControlError
from ..interfaces.version_control import VersionControlTooling

logger = LoggerFactory.get_logger(
    name="git-version-control", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


class GitVersionControl(VersionControlTooling):
    """
    Runs git and the dependency installer inside the worker checkout.

    A GitHub token, when given, is passed to each git invocation as an
    ``http.extraheader`` so the global git config is never modified.
    """

    def __init__(
        self,
        project_root: str = ".",
        github_token: Optional[str] = None,
        command_timeout: float = 30.0,
        install_command: Optional[Sequence[str]] = None,
        install_timeout: float = 120.0,
    ):
        self.project_root = Path(project_root).resolve()
        self.github_token = github_token
        self.command_timeout = command_timeout
        self.install_command = list(
            install_command or ["{python}", "-m", "pip", "install", "-r", "requirements.txt"]
        )
        self.install_timeout = install_timeout

    async def _run(self, args: List[str], timeout: float) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(self.project_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise VersionControlError(f"Cannot run {args[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise VersionControlError(
                f"Command timed out after {timeout}s: {' '.join(args[:3])}"
            ) from e

        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or stdout.decode(errors="replace").strip()
            raise VersionControlError(
                f"Command failed ({process.returncode}): {' '.join(args[:3])}: {message}"
            )
        return stdout.decode(errors="replace").strip()

    async def _git(self, *args: str) -> str:
        command = ["git"]
        if self.github_token:
            command += [
                "-c",
                f"http.https://github.com/.extraheader=AUTHORIZATION: bearer {self.github_token}",
            ]
        command += list(args)
        return await self._run(command, self.command_timeout)

    async def fetch_tags(self) -> None:
        await self._git("fetch", "--tags", "origin")

    async def list_tags(self) -> List[str]:
        output = await self._git("tag", "-l")
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def describe_latest_tag(self) -> Optional[str]:
        output = await self._git("describe", "--tags", "--abbrev=0")
        return output or None

    async def current_branch(self) -> str:
        return await self._git("rev-parse", "--abbrev-ref", "HEAD")

    async def current_commit(self) -> str:
        return await self._git("rev-parse", "HEAD")

    async def checkout(self, ref: str) -> None:
        await self._git("checkout", ref)

    async def reinstall_dependencies(self) -> None:
        command = [part.replace("{python}", sys.executable) for part in self.install_command]
        logger.info(f"📚 Running: {' '.join(command)}")
        await self._run(command, self.install_timeout)
