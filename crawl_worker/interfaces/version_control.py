# interfaces/version_control.py
"""
Defines the abstract interface over version-control and dependency tooling.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class VersionControlTooling(ABC):
    """
    External tooling used by the version manager.

    Implementations raise ``VersionControlError`` when a command fails.
    """

    @abstractmethod
    async def fetch_tags(self) -> None:
        """Refresh known tags from the remote origin."""
        pass

    @abstractmethod
    async def list_tags(self) -> List[str]:
        """Return all local tag names."""
        pass

    @abstractmethod
    async def describe_latest_tag(self) -> Optional[str]:
        """Return the most recent tag reachable from HEAD, or None."""
        pass

    @abstractmethod
    async def current_branch(self) -> str:
        """Return the checked out branch name, ``HEAD`` when detached."""
        pass

    @abstractmethod
    async def current_commit(self) -> str:
        pass

    @abstractmethod
    async def checkout(self, ref: str) -> None:
        pass

    @abstractmethod
    async def reinstall_dependencies(self) -> None:
        """Reinstall dependencies from the lock file."""
        pass
