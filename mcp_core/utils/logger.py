"""
Global Logger Manager using loguru.

Configuration via .env file:
- LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- LOG_MODE: Environment mode (development, production)
- LOG_FORMAT: "text" or "json" (json serializes each record, production only)
- LOG_DIR: Log directory for production (default: logs)
- LOG_ROTATION: Rotation size (e.g., "10 MB", "1 GB", "1 day")
- LOG_RETENTION: Retention time (e.g., "7 days", "1 month")

Every record carries two extras: `name` (module) and `session_id`
("-" outside of a session). Use bind_session() inside session-scoped code.
"""

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_MODE = "development"
DEFAULT_LOG_FORMAT = "text"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_ROTATION = "10 MB"
DEFAULT_LOG_RETENTION = "7 days"

NO_SESSION = "-"

_DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<magenta>{extra[session_id]}</magenta> - <level>{message}</level>"
)
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} | "
    "{extra[session_id]} - {message}"
)


class LoggerManager:
    """Global singleton logger manager."""

    _instance: Optional["LoggerManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "LoggerManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if LoggerManager._initialized:
            return
        LoggerManager._initialized = True

        self.log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        self.log_mode = os.getenv("LOG_MODE", DEFAULT_LOG_MODE).lower()
        self.log_format = os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT).lower()
        self.log_dir = Path(os.getenv("LOG_DIR", DEFAULT_LOG_DIR))
        self.log_rotation = os.getenv("LOG_ROTATION", DEFAULT_LOG_ROTATION)
        self.log_retention = os.getenv("LOG_RETENTION", DEFAULT_LOG_RETENTION)

        # Records emitted through the bare loguru logger still render
        logger.configure(extra={"name": "root", "session_id": NO_SESSION})
        self._install_handlers()

    def _install_handlers(self) -> None:
        logger.remove()
        if self.log_mode == "production":
            self._configure_production()
        else:
            self._configure_development()

    def _configure_development(self) -> None:
        """Console output for local runs and tests."""
        logger.add(
            sys.stderr,
            format=_DEV_FORMAT,
            level=self.log_level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    def _configure_production(self) -> None:
        """Rotating files, with errors duplicated into their own file."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        serialize = self.log_format == "json"

        logger.add(
            self.log_dir / "mcp_{time:YYYY-MM-DD}.log",
            format=_FILE_FORMAT,
            level=self.log_level,
            rotation=self.log_rotation,
            retention=self.log_retention,
            serialize=serialize,
            encoding="utf-8",
            enqueue=True,
        )
        logger.add(
            self.log_dir / "mcp_error_{time:YYYY-MM-DD}.log",
            format=_FILE_FORMAT,
            level="ERROR",
            rotation=self.log_rotation,
            retention=self.log_retention,
            serialize=serialize,
            encoding="utf-8",
            enqueue=True,
        )

    def get_logger(self, name: Optional[str] = None):
        """
        Get a logger bound to a module name.

        Args:
            name: Logger name, usually __name__. Defaults to "root".

        Returns:
            Bound loguru logger
        """
        return logger.bind(name=name or "root", session_id=NO_SESSION)

    def set_level(self, level: str) -> None:
        """Change the log level at runtime by reinstalling the handlers."""
        self.log_level = level.upper()
        self._install_handlers()


# ======================================================================
## Convenience Functions
# ======================================================================


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance. This is the recommended way to use the logger.

    Example:
        from mcp_core.utils.logger import get_logger

        log = get_logger(__name__)
        log.info("Session created")
    """
    return LoggerManager().get_logger(name)


def bind_session(log, session_id: str):
    """Return a child logger whose records carry the given session id."""
    return log.bind(session_id=session_id)


def set_log_level(level: str) -> None:
    """Change log level at runtime (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""
    LoggerManager().set_level(level)


__all__ = ["LoggerManager", "get_logger", "bind_session", "set_log_level"]
