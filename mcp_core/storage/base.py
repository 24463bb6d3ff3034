"""
Storage capabilities consumed by the MCP core.

Implementations are free to pick any engine. Failures should be raised as
ordinary exceptions; the ContextManager reports them to callers as
ExternalServiceError.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from mcp_core.types import AgentPerformance, Knowledge, Memory, Session


@runtime_checkable
class SessionStore(Protocol):
    """Durable session cache keyed by session id, with expiry."""

    async def get(self, session_id: str) -> Optional[Session]: ...

    async def set(self, session: Session, ttl: int) -> None: ...

    async def delete(self, session_id: str) -> None: ...


@runtime_checkable
class RelationalStore(Protocol):
    """Keyed persistence for sessions, user preferences, memory and agent stats."""

    async def create_session(self, session: Session) -> None: ...

    async def update_session(self, session: Session) -> None: ...

    async def get_user_preferences(self, user_id: str) -> Optional[dict[str, Any]]: ...

    async def get_user_memory(self, user_id: str) -> Optional[Memory]: ...

    async def update_agent_performance(
        self, agent_id: str, performance: AgentPerformance
    ) -> None: ...


@runtime_checkable
class EmbeddingService(Protocol):
    """Vector search over indexed knowledge."""

    async def embed(self, text: str) -> list[float]: ...

    async def find_similar(self, vector: list[float], limit: int) -> list[Knowledge]: ...


@runtime_checkable
class KnowledgeIndex(Protocol):
    """Write side of the embedding service."""

    async def add(self, knowledge: Knowledge) -> None: ...


def user_memory_of(session: Session) -> Memory:
    """Long-term memory carried over to the user's next session."""
    return Memory(long_term=session.memory.long_term.model_copy(deep=True))
