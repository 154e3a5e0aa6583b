from .git_version_control import GitVersionControl
from .http_task_server import HttpTaskServerClient
from .subprocess_crawl_engine import SubprocessCrawlEngine, parse_engine_output

__all__ = [
    "GitVersionControl",
    "HttpTaskServerClient",
    "SubprocessCrawlEngine",
    "parse_engine_output",
]
