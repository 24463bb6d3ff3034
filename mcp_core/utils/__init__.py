"""
Utility modules shared by the MCP core.

- logger: Structured logging with loguru
- text: Word-list heuristics (topics, sentiment, urgency)
- cache: Bounded FIFO cache
- locks: Per-key asyncio locks
"""

from mcp_core.utils.logger import get_logger, bind_session, set_log_level, LoggerManager
from mcp_core.utils.cache import BoundedCache
from mcp_core.utils.locks import KeyedLock

__all__ = [
    # Logger
    "get_logger",
    "bind_session",
    "set_log_level",
    "LoggerManager",
    # Structures
    "BoundedCache",
    "KeyedLock",
]
