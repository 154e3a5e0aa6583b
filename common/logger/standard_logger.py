# common/logger/standard_logger.py

"""
Standard logger built on the ``logging`` module with colored console output.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

from colorama import Fore, Style, init as colorama_init

from .logger_interface import LoggerInterface, LogLevel

colorama_init()

_LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.MAGENTA + Style.BRIGHT,
}

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{Style.RESET_ALL}"


class StandardLogger(LoggerInterface):
    """
    Logger writing to the console and, optionally, to a log file.

    Console and file handlers carry their own levels so a service can keep
    the terminal at INFO while the file receives DEBUG output.
    """

    def __init__(
        self,
        name: str,
        level: LogLevel = LogLevel.INFO,
        console_level: Optional[LogLevel] = None,
        file_level: Optional[LogLevel] = None,
        use_colors: bool = True,
        log_file: Optional[str] = None,
        log_format: str = DEFAULT_FORMAT,
    ):
        super().__init__(name, level)
        self.log_file = log_file

        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

        # Loggers are process-wide; rebuilding must not duplicate handlers
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel((console_level or level).to_logging_level())
        formatter_cls = ColoredFormatter if use_colors else logging.Formatter
        console_handler.setFormatter(formatter_cls(log_format, DEFAULT_DATE_FORMAT))
        self._logger.addHandler(console_handler)

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel((file_level or level).to_logging_level())
            file_handler.setFormatter(logging.Formatter(log_format, DEFAULT_DATE_FORMAT))
            self._logger.addHandler(file_handler)

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        if not self.is_enabled_for(level):
            return
        if kwargs:
            extras = " ".join(f"{key}={value}" for key, value in kwargs.items())
            message = f"{message} | {extras}"
        self._logger.log(level.to_logging_level(), message)

    def set_level(self, level: LogLevel) -> None:
        super().set_level(level)
        for handler in self._logger.handlers:
            handler.setLevel(level.to_logging_level())
