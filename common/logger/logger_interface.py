# common/logger/logger_interface.py

"""
Logger interface shared by all logger implementations.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Log level enumeration"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Map to the numeric level used by the ``logging`` module."""
        return getattr(logging, self.value)

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        try:
            return cls(value.upper())
        except ValueError:
            raise ValueError(
                f"Invalid log level: {value}. Valid levels: {[l.value for l in cls]}"
            )


class LoggerInterface(ABC):
    """
    Abstract logger interface.

    Implementations only need to provide ``_log``; the level helpers are
    shared so every logger in the platform behaves the same way.
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        self.name = name
        self.level = level

    @abstractmethod
    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        pass

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.to_logging_level() >= self.level.to_logging_level()

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.CRITICAL, message, **kwargs)

    def set_level(self, level: LogLevel) -> None:
        self.level = level
