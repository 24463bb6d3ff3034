"""
In-process store implementations.

Used as defaults and in tests. Sessions are stored serialized so callers
never share mutable state with the store.
"""

import hashlib
import math
import time
from typing import Any, Callable, Optional

from mcp_core.storage.base import user_memory_of
from mcp_core.types import AgentPerformance, Knowledge, Memory, Session
from mcp_core.utils.text import tokenize


class InMemorySessionStore:
    """Session store with per-entry TTL."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, session_id: str) -> Optional[Session]:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        payload, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[session_id]
            return None
        return Session.model_validate_json(payload)

    async def set(self, session: Session, ttl: int) -> None:
        self._entries[session.id] = (session.model_dump_json(), self._clock() + ttl)

    async def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._entries)


class InMemoryRelationalStore:
    def __init__(self):
        self.sessions: dict[str, Session] = {}
        self.preferences: dict[str, dict[str, Any]] = {}
        self.memories: dict[str, Memory] = {}
        self.agent_performance: dict[str, AgentPerformance] = {}

    async def create_session(self, session: Session) -> None:
        self.sessions[session.id] = session.model_copy(deep=True)

    async def update_session(self, session: Session) -> None:
        self.sessions[session.id] = session.model_copy(deep=True)
        self.memories[session.user_id] = user_memory_of(session)

    async def get_user_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        return self.preferences.get(user_id)

    async def set_user_preferences(self, user_id: str, preferences: dict[str, Any]) -> None:
        self.preferences[user_id] = dict(preferences)

    async def get_user_memory(self, user_id: str) -> Optional[Memory]:
        memory = self.memories.get(user_id)
        return memory.model_copy(deep=True) if memory else None

    async def update_agent_performance(
        self, agent_id: str, performance: AgentPerformance
    ) -> None:
        self.agent_performance[agent_id] = performance.model_copy()

    async def get_agent_performance(self, agent_id: str) -> Optional[AgentPerformance]:
        return self.agent_performance.get(agent_id)


class InMemoryKnowledgeIndex:
    """
    Embedding service over a hashed bag-of-words.

    Each token is hashed into one of `dimensions` buckets; vectors are
    L2-normalized so similarity is a plain dot product.
    """

    def __init__(self, dimensions: int = 256, min_score: float = 0.0):
        self.dimensions = dimensions
        self.min_score = min_score
        self._entries: dict[str, tuple[Knowledge, list[float]]] = {}

    async def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for token in tokenize(text):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "big") % self.dimensions] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    async def add(self, knowledge: Knowledge) -> None:
        text = " ".join([knowledge.title, knowledge.content, *knowledge.tags])
        self._entries[knowledge.id] = (knowledge, await self.embed(text))

    async def find_similar(self, vector: list[float], limit: int) -> list[Knowledge]:
        scored = []
        for knowledge, candidate in self._entries.values():
            score = sum(a * b for a, b in zip(vector, candidate))
            if score > self.min_score:
                scored.append((score, knowledge))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [knowledge for _, knowledge in scored[:limit]]

    def __len__(self) -> int:
        return len(self._entries)
