# common/logger/logger_factory.py

"""
Factory for creating and sharing logger instances.
"""

import threading
from enum import Enum
from typing import Dict, Optional

from .logger_interface import LoggerInterface, LogLevel
from .print_logger import PrintLogger
from .standard_logger import StandardLogger


class LoggerType(str, Enum):
    """Available logger implementations"""

    STANDARD = "standard"
    PRINT = "print"


class LoggerFactory:
    """
    Creates loggers and keeps one instance per name.

    ``get_logger`` returns the cached logger when one exists so modules can
    call it at import time without multiplying handlers; ``create_logger``
    always builds a fresh instance.
    """

    _loggers: Dict[str, LoggerInterface] = {}
    _lock = threading.Lock()

    @classmethod
    def create_logger(
        cls,
        name: str,
        logger_type: LoggerType = LoggerType.STANDARD,
        level: LogLevel = LogLevel.INFO,
        console_level: Optional[LogLevel] = None,
        file_level: Optional[LogLevel] = None,
        use_colors: bool = True,
        log_file: Optional[str] = None,
    ) -> LoggerInterface:
        if logger_type == LoggerType.PRINT:
            return PrintLogger(name=name, level=level)
        if logger_type == LoggerType.STANDARD:
            return StandardLogger(
                name=name,
                level=level,
                console_level=console_level,
                file_level=file_level,
                use_colors=use_colors,
                log_file=log_file,
            )
        raise ValueError(f"Unsupported logger type: {logger_type}")

    @classmethod
    def get_logger(
        cls,
        name: str,
        logger_type: LoggerType = LoggerType.STANDARD,
        level: LogLevel = LogLevel.INFO,
        console_level: Optional[LogLevel] = None,
        file_level: Optional[LogLevel] = None,
        use_colors: bool = True,
        log_file: Optional[str] = None,
    ) -> LoggerInterface:
        with cls._lock:
            logger = cls._loggers.get(name)
            if logger is None:
                logger = cls.create_logger(
                    name=name,
                    logger_type=logger_type,
                    level=level,
                    console_level=console_level,
                    file_level=file_level,
                    use_colors=use_colors,
                    log_file=log_file,
                )
                cls._loggers[name] = logger
            return logger

    @classmethod
    def set_global_level(cls, level: LogLevel) -> None:
        with cls._lock:
            for logger in cls._loggers.values():
                logger.set_level(level)
