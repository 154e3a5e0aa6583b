# interfaces/crawl_engine.py
"""
Defines the abstract interface for the external crawl engine.
"""

from abc import ABC, abstractmethod

from ..models.crawl import CrawlOutcome
from ..schemas.config_schemas import ResolvedConfig


class CrawlEngine(ABC):
    """
    Abstract base class for crawl engine invocations.
    """

    @abstractmethod
    async def execute(self, task_id: str, config: ResolvedConfig) -> CrawlOutcome:
        """
        Run the crawl engine on a resolved config.

        Args:
            task_id (str): Task the config belongs to.
            config (ResolvedConfig): Fully resolved execution config.

        Returns:
            CrawlOutcome: Success flag plus whatever the engine reported.
        """
        pass
