from mcp_core.context.manager import ContextManager, is_important
from mcp_core.context.memory import MemoryProcessor, MemoryUpdate, consolidate

__all__ = [
    "ContextManager",
    "MemoryProcessor",
    "MemoryUpdate",
    "consolidate",
    "is_important",
]
