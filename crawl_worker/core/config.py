# core/config.py

"""
Configuration management for the crawl worker runtime.
"""

import socket
import time
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_worker_id() -> str:
    return f"crawler-worker-{socket.gethostname()}-{int(time.time() * 1000)}"


class Settings(BaseSettings):
    """Worker settings with validation."""

    # Worker identity
    app_name: str = "crawl-worker"
    environment: str = "development"
    worker_id: str = Field(
        default_factory=_default_worker_id, description="Unique worker identifier"
    )
    worker_name: str = Field(
        default="Crawler Worker", description="Human readable worker name"
    )
    supported_regions: List[str] = Field(
        default_factory=lambda: ["TW", "US", "JP"],
        description="Market regions this worker accepts tasks for",
    )
    supported_data_types: List[str] = Field(
        default_factory=lambda: ["eps", "balance_sheet", "income_statement"],
        description="Data types this worker accepts tasks for",
    )

    # Task server configuration
    task_server_url: str = Field(
        default="http://localhost:3000", description="Task server base URL"
    )
    api_key: Optional[str] = Field(
        default=None, description="Bearer token for the task server"
    )
    task_server_timeout: float = Field(
        default=30.0, description="HTTP timeout for task server calls in seconds"
    )
    task_server_retry_attempts: int = Field(
        default=3, description="Retries for retryable task server failures"
    )
    task_server_retry_delay: float = Field(
        default=1.0, description="Base delay in seconds for exponential backoff"
    )
    task_server_retry_max_delay: float = Field(
        default=30.0, description="Upper bound for a single backoff delay"
    )

    # Scheduling
    max_concurrent: int = Field(default=3, description="Maximum concurrent tasks")
    task_request_interval_seconds: float = Field(
        default=30.0, description="Task polling interval in seconds"
    )
    heartbeat_interval_seconds: float = Field(
        default=60.0, description="Heartbeat interval in seconds"
    )
    shutdown_drain_timeout_seconds: float = Field(
        default=30.0, description="How long stop() waits for running tasks"
    )
    drain_poll_interval_seconds: float = Field(
        default=1.0, description="How often stop() re-checks running tasks"
    )

    # Error policy
    auto_restart_on_error: bool = True
    max_error_retries: int = Field(
        default=5, description="Error count that triggers an automatic restart"
    )

    # Versioning
    auto_version_switch: bool = Field(
        default=True, description="Switch versions automatically for tasks"
    )
    prefer_git_version: bool = Field(
        default=True, description="Prefer the git tag over the manifest version"
    )
    project_root: str = Field(default=".", description="Worker checkout directory")
    version_cache_dir: str = Field(
        default=".version-cache", description="Backup and switch history directory"
    )
    version_manifest_path: str = Field(
        default="crawl_worker/__init__.py",
        description="File declaring __version__, relative to project root",
    )
    version_switch_history_limit: int = 50
    github_token: Optional[str] = Field(
        default=None, description="Token for fetching tags from private repos"
    )
    git_command_timeout: float = 30.0
    dependency_install_command: List[str] = Field(
        default_factory=lambda: ["{python}", "-m", "pip", "install", "-r", "requirements.txt"],
        description="Command reinstalling dependencies from the lock file",
    )
    dependency_install_timeout: float = 120.0

    # Config templates
    config_base_dir: str = Field(
        default="config-categorized", description="Categorized config directory"
    )
    template_base_dir: str = Field(
        default="config/templates", description="Flat template directory"
    )
    config_identifier_prefix: str = Field(
        default="yahoo-finance", description="Prefix of inferred config identifiers"
    )
    config_cache_size: int = 500

    # Crawl engine
    crawl_engine_command: List[str] = Field(
        default_factory=lambda: ["crawl-engine", "--config", "{config_path}"],
        description="Command running the crawl engine on a config file",
    )
    crawl_engine_timeout: float = Field(
        default=300.0, description="Crawl engine timeout in seconds"
    )
    crawl_engine_temp_dir: str = ".temp"

    # Logging configuration
    log_level: str = "INFO"
    log_file_path: str = "logs/"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in levels:
            raise ValueError(f"log_level must be one of {sorted(levels)}")
        return v.upper()

    @field_validator("max_concurrent")
    @classmethod
    def validate_max_concurrent(cls, v):
        if v < 1 or v > 100:
            raise ValueError("max_concurrent must be between 1 and 100")
        return v

    @field_validator(
        "task_request_interval_seconds",
        "heartbeat_interval_seconds",
        "drain_poll_interval_seconds",
    )
    @classmethod
    def validate_positive_interval(cls, v):
        if v <= 0:
            raise ValueError("intervals must be positive")
        return v

    @field_validator("task_server_retry_attempts", "max_error_retries")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("retry counts cannot be negative")
        return v

    @field_validator("supported_regions")
    @classmethod
    def validate_supported_regions(cls, v):
        return [region.strip().upper() for region in v if region.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
