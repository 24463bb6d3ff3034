"""
Storage capabilities and their implementations.

- base: SessionStore / RelationalStore / EmbeddingService protocols
- memory_store: In-process stores (defaults, tests)
- file_store: JSON-file stores on aiofiles
"""

from mcp_core.storage.base import (
    SessionStore,
    RelationalStore,
    EmbeddingService,
    KnowledgeIndex,
)
from mcp_core.storage.memory_store import (
    InMemorySessionStore,
    InMemoryRelationalStore,
    InMemoryKnowledgeIndex,
)
from mcp_core.storage.file_store import FileSessionStore, FileRelationalStore

__all__ = [
    "SessionStore",
    "RelationalStore",
    "EmbeddingService",
    "KnowledgeIndex",
    "InMemorySessionStore",
    "InMemoryRelationalStore",
    "InMemoryKnowledgeIndex",
    "FileSessionStore",
    "FileRelationalStore",
]
