"""
Context Manager

Owns session lifecycle, conversation history and long-term memory.

Concurrency model:
- Every mutation of a session runs under that session's lock (KeyedLock).
  Concurrent writers to the same session commit one after another, in the
  order they arrived.
- Mutations are applied to a working copy which only replaces the cached
  session after it has been persisted, so a failed write leaves the
  previous state intact.
- Callers that need to do slow work (LLM calls) take a snapshot(), release
  the lock, and commit their result with another update_context().
"""

from typing import Any, Iterable, Optional

from mcp_core.config import Settings
from mcp_core.context.memory import MemoryProcessor, MemoryUpdate
from mcp_core.errors import ExternalServiceError, MCPError, NotFoundError, ValidationError
from mcp_core.observers import ContextObserver, notify
from mcp_core.storage.base import (
    EmbeddingService,
    KnowledgeIndex,
    RelationalStore,
    SessionStore,
)
from mcp_core.types import (
    Context,
    Entity,
    Intent,
    Knowledge,
    Memory,
    Message,
    Session,
    SessionType,
    UserPreferences,
    utc_now,
)
from mcp_core.utils.locks import KeyedLock
from mcp_core.utils.logger import bind_session, get_logger
from mcp_core.utils.text import has_urgency

logger = get_logger(__name__)


IMPORTANT_CONFIDENCE = 0.8
IMPORTANT_LENGTH = 100


def is_important(message: Message) -> bool:
    """Messages worth keeping when old history is trimmed."""
    return (
        (message.confidence or 0.0) > IMPORTANT_CONFIDENCE
        or bool(message.entities)
        or len(message.content) > IMPORTANT_LENGTH
        or has_urgency(message.content)
    )


def _matches(knowledge: Knowledge, query: str) -> bool:
    needle = query.lower()
    return (
        needle in knowledge.title.lower()
        or needle in knowledge.content.lower()
        or any(needle in tag.lower() for tag in knowledge.tags)
    )


class ContextManager:
    def __init__(
        self,
        session_store: SessionStore,
        relational_store: RelationalStore,
        settings: Optional[Settings] = None,
        embeddings: Optional[EmbeddingService] = None,
        knowledge_index: Optional[KnowledgeIndex] = None,
        memory_processor: Optional[MemoryProcessor] = None,
        observers: Optional[Iterable[ContextObserver]] = None,
    ):
        self.settings = settings or Settings()
        self.session_store = session_store
        self.relational_store = relational_store
        self.embeddings = embeddings
        self.knowledge_index = knowledge_index
        self.memory_processor = memory_processor or MemoryProcessor(
            summary_interval=self.settings.summary_interval
        )
        self.observers: list[ContextObserver] = list(observers or [])

        self._active_sessions: dict[str, Session] = {}
        self._locks = KeyedLock()

    def add_observer(self, observer: ContextObserver) -> None:
        self.observers.append(observer)

    # ==================================================================
    ## Session lifecycle
    # ==================================================================

    async def create_session(
        self,
        user_id: str,
        session_type: SessionType = SessionType.CHAT,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Session:
        """
        Create and persist a new session.

        Preferences and long-term memory are loaded from the relational
        store; if the user has none (or the lookup fails) hard defaults are
        used.

        Raises:
            ExternalServiceError: The session could not be persisted
        """
        stored_preferences, memory = await self._load_user_defaults(user_id)

        session = Session(
            user_id=user_id,
            type=session_type,
            context=Context(
                user_preferences=UserPreferences.merged(stored_preferences),
                metadata={**(metadata or {}), "message_count": 0},
            ),
            memory=memory or Memory(),
        )

        async with self._locks.acquire(session.id):
            await self._persist(session, created=True)
            self._active_sessions[session.id] = session

        bind_session(logger, session.id).info(
            f"Created {session_type.value} session for user {user_id}"
        )
        notify(self.observers, "on_session_created", session)
        return session.model_copy(deep=True)

    async def close_session(self, session_id: str) -> None:
        """
        Mark a session inactive and drop it from the in-process cache.

        The stored copy is kept; a later lookup reloads it from the session
        store.

        Raises:
            NotFoundError: Unknown session
            ExternalServiceError: The session could not be persisted
        """
        async with self._locks.acquire(session_id):
            session = (await self._require(session_id)).model_copy(deep=True)
            session.is_active = False
            session.updated_at = max(utc_now(), session.updated_at)
            await self._persist(session)
            self._active_sessions.pop(session_id, None)

        bind_session(logger, session_id).info("Closed session")

    @property
    def active_session_count(self) -> int:
        return len(self._active_sessions)

    async def _load_user_defaults(
        self, user_id: str
    ) -> tuple[Optional[dict[str, Any]], Optional[Memory]]:
        try:
            preferences = await self.relational_store.get_user_preferences(user_id)
            memory = await self.relational_store.get_user_memory(user_id)
            return preferences, memory
        except Exception as e:
            logger.warning(f"Falling back to default preferences for {user_id}: {e}")
            return None, None

    async def get_session(self, session_id: str) -> Optional[Session]:
        """Copy of the session, from the active cache or the session store."""
        session = await self._lookup(session_id)
        return session.model_copy(deep=True) if session else None

    async def snapshot(self, session_id: str) -> Session:
        """
        Consistent copy of the session, taken under its lock.

        Raises:
            NotFoundError: Unknown session
        """
        async with self._locks.acquire(session_id):
            session = await self._require(session_id)
            return session.model_copy(deep=True)

    async def _lookup(self, session_id: str) -> Optional[Session]:
        session = self._active_sessions.get(session_id)
        if session is not None:
            return session
        try:
            session = await self.session_store.get(session_id)
        except Exception as e:
            raise ExternalServiceError(
                f"Failed to load session {session_id}: {e}", service="session_store"
            ) from e
        if session is not None:
            self._active_sessions[session_id] = session
        return session

    async def _require(self, session_id: str) -> Session:
        session = await self._lookup(session_id)
        if session is None:
            raise NotFoundError("session", session_id)
        return session

    async def _persist(self, session: Session, created: bool = False) -> None:
        try:
            await self.session_store.set(session, self.settings.session_ttl)
            if created:
                await self.relational_store.create_session(session)
            else:
                await self.relational_store.update_session(session)
        except MCPError:
            raise
        except Exception as e:
            bind_session(logger, session.id).error(f"Failed to persist session: {e}")
            raise ExternalServiceError(
                f"Failed to persist session {session.id}: {e}", service="session_store"
            ) from e

    # ==================================================================
    ## Context updates
    # ==================================================================

    async def update_context(
        self,
        session_id: str,
        message: Message,
        intent: Optional[Intent] = None,
        entities: Optional[list[Entity]] = None,
    ) -> Context:
        """
        Append a message to a session and commit it.

        Args:
            session_id: Target session
            message: Message to append; must belong to the session
            intent: Replaces the current intent when given
            entities: Appended to the accumulated entities when given

        Returns:
            Copy of the committed context

        Raises:
            NotFoundError: Unknown session
            ValidationError: Empty content or mismatched session id
            ExternalServiceError: The update could not be persisted
        """
        log = bind_session(logger, session_id)

        async with self._locks.acquire(session_id):
            current = await self._require(session_id)
            self._validate(session_id, message)

            session = current.model_copy(deep=True)
            context = session.context

            # 1. Append
            context.conversation_history.append(message)

            # 2. Intent / entities
            if intent is not None:
                context.current_intent = intent
            if entities:
                context.entities.extend(entities)

            # 3. Bookkeeping
            context.metadata["last_message_at"] = message.timestamp.isoformat()
            context.metadata["message_count"] = context.metadata.get("message_count", 0) + 1

            # 4. Long-term memory (best effort)
            update = self._process_memory(session, message)

            # 5. Trim history
            self._optimize_history(context)

            # 6. Commit
            session.updated_at = max(utc_now(), current.updated_at)
            await self._persist(session)
            self._active_sessions[session_id] = session

            log.debug(
                f"Committed {message.role.value} message {message.id} "
                f"({len(context.conversation_history)} in history)"
            )

            if update is not None:
                await self._index_knowledge(update.knowledge)
            notify(self.observers, "on_context_updated", session, message)

            return context.model_copy(deep=True)

    def _validate(self, session_id: str, message: Message) -> None:
        if not message.content or not message.content.strip():
            raise ValidationError("Message content must not be empty", {"message_id": message.id})
        if message.session_id != session_id:
            raise ValidationError(
                f"Message {message.id} belongs to session {message.session_id}, not {session_id}",
                {"message_id": message.id, "session_id": message.session_id},
            )

    def _process_memory(self, session: Session, message: Message) -> Optional[MemoryUpdate]:
        try:
            update = self.memory_processor.process(session, message)
            update.apply(session.memory.long_term)
            return update
        except Exception as e:
            bind_session(logger, session.id).warning(f"Long-term memory processing failed: {e}")
            return None

    def _optimize_history(self, context: Context) -> None:
        """
        Keep the most recent messages plus the newest important older ones.

        Runs only once history grows past history_max_messages.
        """
        history = context.conversation_history
        if len(history) <= self.settings.history_max_messages:
            return

        keep = self.settings.history_keep_recent
        recent = history[-keep:]
        older = history[:-keep]
        important = [m for m in older if is_important(m)]
        kept = important[-self.settings.history_max_important :] if important else []

        context.conversation_history = kept + recent
        logger.debug(
            f"History optimized: {len(history)} -> {len(context.conversation_history)} "
            f"({len(kept)} important kept)"
        )

    async def _index_knowledge(self, knowledge: list[Knowledge]) -> None:
        if self.knowledge_index is None:
            return
        for entry in knowledge:
            try:
                await self.knowledge_index.add(entry)
            except Exception as e:
                logger.warning(f"Failed to index knowledge {entry.id}: {e}")

    # ==================================================================
    ## Retrieval
    # ==================================================================

    async def find_relevant_context(
        self, session_id: str, query: str, limit: Optional[int] = None
    ) -> list[Knowledge]:
        """
        Knowledge relevant to a query.

        Merges embedding search with a substring match over the session's own
        knowledge base. Each source contributes at most `limit` entries;
        duplicates are dropped. Unknown sessions yield an empty list.

        Raises:
            ExternalServiceError: The embedding service failed
        """
        if limit is None:
            limit = self.settings.relevant_context_limit
        session = await self._lookup(session_id)
        if session is None:
            return []

        results: list[Knowledge] = []
        if self.embeddings is not None:
            try:
                vector = await self.embeddings.embed(query)
                similar = await self.embeddings.find_similar(vector, limit)
            except Exception as e:
                raise ExternalServiceError(
                    f"Similarity search failed: {e}", service="embeddings"
                ) from e
            results.extend(similar[:limit])

        local = [k for k in session.memory.long_term.knowledge_base if _matches(k, query)]
        seen = {k.id for k in results}
        results.extend(k for k in local[:limit] if k.id not in seen)
        return results
