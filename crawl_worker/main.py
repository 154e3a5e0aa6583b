# main.py

"""
Crawl worker command line entry point.

Usage:
    python -m crawl_worker.main start
    python -m crawl_worker.main status
    python -m crawl_worker.main version
    python -m crawl_worker.main switch v1.2.0
    python -m crawl_worker.main history
"""

import argparse
import asyncio
import json
import signal
import sys

from common.logger import LoggerFactory, LoggerType, LogLevel

from .core.config import settings
from .utils.dependencies import Container, cleanup_services, create_container

logger = LoggerFactory.get_logger(
    name="crawl-worker",
    logger_type=LoggerType.STANDARD,
    level=LogLevel.INFO,
    file_level=LogLevel.DEBUG,
    log_file=f"{settings.log_file_path}crawl_worker.log",
)
console = LoggerFactory.create_logger(name="crawl-worker-cli", logger_type=LoggerType.PRINT)


def setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Setup signal handlers for graceful shutdown."""
    loop = asyncio.get_running_loop()

    def signal_handler(signum: int) -> None:
        logger.info(f"🛑 Received signal {signum}, shutting down gracefully...")
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, signal_handler, signum)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(signum, lambda s, f: loop.call_soon_threadsafe(stop_event.set))


async def run_worker(container: Container) -> int:
    orchestrator = container.worker_orchestrator()
    stop_event = asyncio.Event()
    setup_signal_handlers(stop_event)

    try:
        await orchestrator.start()
    except Exception as e:
        logger.error(f"❌ Failed to start worker: {e}")
        return 1

    logger.info("🎉 Crawl worker is running, press Ctrl+C to stop")
    await stop_event.wait()
    await orchestrator.stop()
    logger.info("👋 Crawl worker stopped")
    return 0


async def show_version(container: Container) -> int:
    version_manager = container.version_manager()
    info = await version_manager.get_current_version_info()
    tags = await version_manager.get_available_tags()
    print(
        json.dumps(
            {"version": info.model_dump(mode="json"), "available_tags": tags[:10]},
            indent=2,
        )
    )
    return 0


async def show_status(container: Container) -> int:
    version_manager = container.version_manager()
    task_server = container.task_server()
    status = {
        "worker_id": settings.worker_id,
        "worker_name": settings.worker_name,
        "task_server_url": settings.task_server_url,
        "task_server_reachable": await task_server.test_connection(),
        "version": (await version_manager.get_current_version_info()).model_dump(mode="json"),
        "config_cache": container.config_resolver().get_cache_stats(),
        "supported_regions": settings.supported_regions,
        "supported_data_types": settings.supported_data_types,
        "max_concurrent": settings.max_concurrent,
    }
    print(json.dumps(status, indent=2, default=str))
    return 0


async def switch_version(container: Container, target_version: str) -> int:
    orchestrator = container.worker_orchestrator()
    if await orchestrator.switch_version(target_version):
        console.info(f"✅ Switched to {target_version}")
        return 0
    console.error(f"❌ Failed to switch to {target_version}")
    return 1


def show_history(container: Container) -> int:
    history = container.version_manager().get_version_switch_history()
    print(
        json.dumps(
            [record.model_dump(mode="json", by_alias=True) for record in history], indent=2
        )
    )
    return 0


async def main() -> int:
    """Main function for CLI execution."""
    parser = argparse.ArgumentParser(description="Crawl Worker")
    parser.add_argument(
        "command",
        choices=["start", "status", "version", "switch", "history"],
        help="Command to execute",
    )
    parser.add_argument("target_version", nargs="?", help="Version tag for 'switch'")
    parser.add_argument("--max-concurrent", type=int, help="Override max concurrent tasks")
    parser.add_argument(
        "--no-auto-switch", action="store_true", help="Disable automatic version switching"
    )

    args = parser.parse_args()

    LoggerFactory.set_global_level(LogLevel.from_string(settings.log_level))

    worker_settings = settings
    overrides = {}
    if args.max_concurrent:
        overrides["max_concurrent"] = args.max_concurrent
    if args.no_auto_switch:
        overrides["auto_version_switch"] = False
    if overrides:
        worker_settings = settings.model_copy(update=overrides)

    container = create_container(worker_settings)
    try:
        if args.command == "start":
            return await run_worker(container)
        if args.command == "status":
            return await show_status(container)
        if args.command == "version":
            return await show_version(container)
        if args.command == "switch":
            if not args.target_version:
                parser.error("switch requires a target version")
            return await switch_version(container, args.target_version)
        return show_history(container)
    finally:
        await cleanup_services(container)


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
