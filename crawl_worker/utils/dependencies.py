# utils/dependencies.py

"""
Dependency injection container for the crawl worker.
"""

from dependency_injector import containers, providers

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..adapters.git_version_control import GitVersionControl
from ..adapters.http_task_server import HttpTaskServerClient
from ..adapters.subprocess_crawl_engine import SubprocessCrawlEngine
from ..core.config import Settings, settings
from ..services.config_resolver import ConfigResolver
from ..services.version_manager import VersionManager
from ..services.worker_orchestrator import WorkerOrchestrator


class Container(containers.DeclarativeContainer):
    """Dependency injection container using dependency-injector"""

    # Configuration
    config = providers.Configuration()

    # Logger
    logger = providers.Singleton(
        LoggerFactory.get_logger,
        name="dependency-container",
        logger_type=LoggerType.STANDARD,
        level=LogLevel.INFO,
    )

    # Task server client
    task_server = providers.Singleton(
        HttpTaskServerClient,
        server_url=config.task_server_url,
        worker_id=config.worker_id,
        api_key=config.api_key,
        timeout=config.task_server_timeout,
        retry_attempts=config.task_server_retry_attempts,
        retry_delay=config.task_server_retry_delay,
        retry_max_delay=config.task_server_retry_max_delay,
    )

    # Git and dependency tooling
    version_control = providers.Singleton(
        GitVersionControl,
        project_root=config.project_root,
        github_token=config.github_token,
        command_timeout=config.git_command_timeout,
        install_command=config.dependency_install_command,
        install_timeout=config.dependency_install_timeout,
    )

    # Crawl engine
    crawl_engine = providers.Singleton(
        SubprocessCrawlEngine,
        command=config.crawl_engine_command,
        timeout=config.crawl_engine_timeout,
        temp_dir=config.crawl_engine_temp_dir,
        working_dir=config.project_root,
    )

    # Version manager
    version_manager = providers.Singleton(
        VersionManager,
        tooling=version_control,
        project_root=config.project_root,
        version_cache_dir=config.version_cache_dir,
        manifest_path=config.version_manifest_path,
        prefer_git_version=config.prefer_git_version,
        history_limit=config.version_switch_history_limit,
    )

    # Config resolver
    config_resolver = providers.Singleton(
        ConfigResolver,
        project_root=config.project_root,
        config_base_dir=config.config_base_dir,
        template_base_dir=config.template_base_dir,
        identifier_prefix=config.config_identifier_prefix,
        cache_size=config.config_cache_size,
    )

    # Worker orchestrator
    worker_orchestrator = providers.Singleton(
        WorkerOrchestrator,
        task_server=task_server,
        version_manager=version_manager,
        config_resolver=config_resolver,
        crawl_engine=crawl_engine,
        worker_id=config.worker_id,
        worker_name=config.worker_name,
        supported_regions=config.supported_regions,
        supported_data_types=config.supported_data_types,
        max_concurrent=config.max_concurrent,
        task_request_interval=config.task_request_interval_seconds,
        heartbeat_interval=config.heartbeat_interval_seconds,
        auto_version_switch=config.auto_version_switch,
        auto_restart_on_error=config.auto_restart_on_error,
        max_error_retries=config.max_error_retries,
        drain_timeout=config.shutdown_drain_timeout_seconds,
        drain_poll_interval=config.drain_poll_interval_seconds,
    )


def create_container(worker_settings: Settings = settings) -> Container:
    """Build a container configured from ``worker_settings``."""
    container = Container()
    container.config.from_dict(worker_settings.model_dump())
    return container


async def cleanup_services(container: Container) -> None:
    """Release network resources held by instantiated services."""
    logger = container.logger()
    try:
        await container.task_server().close()
        logger.info("✅ Task server client closed")
    except Exception as e:
        logger.error(f"❌ Error during cleanup: {e}")
