"""
Centralized Logging Configuration for SFL Studio

Every module logger writes INFO and above to stdout and DEBUG and above to a
rotating file under the configured log directory. Session-scoped work logs
through SessionLogAdapter so each line carries its session id.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_dir: Path, name: str) -> Optional[logging.Handler]:
    """Rotating DEBUG file for one logger; None when the directory is not writable."""
    try:
        log_dir.mkdir(exist_ok=True, parents=True)
        handler = RotatingFileHandler(
            log_dir / f"{name.replace('.', '_')}.log",
            maxBytes=LOG_FILE_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        )
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


class StudioLogger:
    """Registry of configured SFL Studio loggers."""

    _loggers: Dict[str, logging.Logger] = {}
    console_level = logging.INFO

    @classmethod
    def get_logger(cls, name: str, log_dir: Optional[Path] = None) -> logging.Logger:
        """
        Get or create a logger with console and rotating-file output.

        Args:
            name: Logger name (usually __name__ of the module)
            log_dir: Directory for the log file (defaults to config.log_dir)

        Returns:
            Configured logger instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        logger = logging.getLogger(name)
        if not logger.handlers:
            logger.setLevel(logging.DEBUG)
            logger.addHandler(_console_handler(cls.console_level))

            if log_dir is None:
                from .config import config
                log_dir = config.log_dir
            file_handler = _file_handler(log_dir, name)
            if file_handler is not None:
                logger.addHandler(file_handler)

            logger.propagate = False

        cls._loggers[name] = logger
        return logger


class SessionLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with the session id: '[session-1a2b] Parsed 12 lines'."""

    def process(self, msg, kwargs):
        return f"[{self.extra['session_id']}] {msg}", kwargs


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Example:
        from sfl_studio.logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Started analysis")
    """
    return StudioLogger.get_logger(name)


def session_logger(logger: logging.Logger, session_id: str) -> SessionLogAdapter:
    return SessionLogAdapter(logger, {"session_id": session_id})


def set_debug_mode(enable: bool = True) -> None:
    """Switch console output of every logger between DEBUG and INFO."""
    level = logging.DEBUG if enable else logging.INFO
    StudioLogger.console_level = level
    for logger in StudioLogger._loggers.values():
        for handler in logger.handlers:
            if not isinstance(handler, RotatingFileHandler):
                handler.setLevel(level)
