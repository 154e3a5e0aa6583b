# common/logger/print_logger.py

from datetime import datetime
from typing import Any

from .logger_interface import LoggerInterface, LogLevel


class PrintLogger(LoggerInterface):
    """Minimal logger printing to stdout, used by CLI commands."""

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        if not self.is_enabled_for(level):
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        line = f"[{timestamp}] {level.value:<8} {self.name}: {message}"
        if kwargs:
            line += " " + " ".join(f"{k}={v}" for k, v in kwargs.items())
        print(line)
