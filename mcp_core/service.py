"""
MCP service facade.

The single object a transport layer talks to. It wires the context manager,
agent registry and reasoning engine together and exposes:

- create_session / update_context / find_relevant_context
- process_request: reason about a message that is already in the session
- handle_message: append a user message, reason, append the reply
- stream_message: same as handle_message, streaming a single agent's reply
- get_agent / get_active_agents / get_performance_metrics

Usage:
    service = MCPService.create()
    session = await service.create_session("user123")
    result = await service.handle_message(session.id, "Quiero crear un artículo sobre IA")
    print(result.response.content)
"""

import asyncio
import time
from typing import Any, AsyncGenerator, Iterable, Optional

from mcp_core.agent.manager import RESPONSE_CONFIDENCE, AgentManager
from mcp_core.config import Settings, load_settings
from mcp_core.context.manager import ContextManager
from mcp_core.events import (
    StreamChunkEvent,
    StreamDoneEvent,
    StreamErrorEvent,
    StreamEvent,
    StreamStartEvent,
)
from mcp_core.model.llm import ChatLLMClient, LLMClient, estimate_tokens
from mcp_core.observers import LoggingObserver
from mcp_core.reasoning.engine import ReasoningEngine
from mcp_core.storage.base import EmbeddingService, RelationalStore, SessionStore
from mcp_core.storage.file_store import FileRelationalStore, FileSessionStore
from mcp_core.storage.memory_store import (
    InMemoryKnowledgeIndex,
    InMemoryRelationalStore,
    InMemorySessionStore,
)
from mcp_core.types import (
    Agent,
    AgentPerformance,
    Context,
    Entity,
    Intent,
    Knowledge,
    Message,
    MessageRole,
    ReasoningResult,
    ResponseMetadata,
    SelectionMetadata,
    Session,
    SessionType,
)
from mcp_core.utils.logger import bind_session, get_logger

log = get_logger(__name__)


class MCPService:
    """
    Facade over the MCP core components.

    Integrates:
    - ContextManager: Sessions, history and long-term memory
    - AgentManager: Personas, routing and performance tracking
    - ReasoningEngine: Simple vs. multi-step handling
    """

    def __init__(
        self,
        settings: Settings,
        llm: LLMClient,
        context_manager: ContextManager,
        agent_manager: AgentManager,
        reasoning_engine: ReasoningEngine,
    ):
        self.settings = settings
        self.llm = llm
        self.context_manager = context_manager
        self.agent_manager = agent_manager
        self.reasoning_engine = reasoning_engine

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        llm: Optional[LLMClient] = None,
        session_store: Optional[SessionStore] = None,
        relational_store: Optional[RelationalStore] = None,
        embeddings: Optional[EmbeddingService] = None,
        agents: Optional[Iterable[Agent]] = None,
        observers: Optional[Iterable[Any]] = None,
        persistent: bool = False,
    ) -> "MCPService":
        """
        Build a fully wired service.

        Args:
            settings: Defaults to load_settings() (.env + config.ini)
            llm: Defaults to ChatLLMClient on the configured endpoint
            session_store / relational_store: Default to in-memory stores, or
                to JSON files under settings.data_dir when persistent=True
            embeddings: Defaults to an in-memory hashed bag-of-words index
            agents: Agent catalog override
            observers: Registered on all three components; defaults to a
                LoggingObserver
        """
        settings = settings or load_settings()

        if persistent:
            session_store = session_store or FileSessionStore(f"{settings.data_dir}/sessions")
            relational_store = relational_store or FileRelationalStore(f"{settings.data_dir}/db")
        else:
            session_store = session_store or InMemorySessionStore()
            relational_store = relational_store or InMemoryRelationalStore()

        knowledge_index = None
        if embeddings is None:
            embeddings = knowledge_index = InMemoryKnowledgeIndex()

        observers = list(observers) if observers is not None else [LoggingObserver()]
        llm = llm or ChatLLMClient(settings)

        context_manager = ContextManager(
            session_store=session_store,
            relational_store=relational_store,
            settings=settings,
            embeddings=embeddings,
            knowledge_index=knowledge_index,
            observers=observers,
        )
        agent_manager = AgentManager(
            llm=llm,
            context_manager=context_manager,
            settings=settings,
            relational_store=relational_store,
            agents=agents,
            observers=observers,
        )
        reasoning_engine = ReasoningEngine(
            context_manager=context_manager,
            agent_manager=agent_manager,
            settings=settings,
            observers=observers,
        )

        return cls(settings, llm, context_manager, agent_manager, reasoning_engine)

    def add_observer(self, observer: Any) -> None:
        """Register an observer with every component."""
        self.context_manager.add_observer(observer)
        self.agent_manager.add_observer(observer)
        self.reasoning_engine.add_observer(observer)

    # ==================================================================
    ## Sessions / context
    # ==================================================================

    async def create_session(
        self,
        user_id: str,
        session_type: SessionType = SessionType.CHAT,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Session:
        return await self.context_manager.create_session(user_id, session_type, metadata)

    async def get_session(self, session_id: str) -> Optional[Session]:
        return await self.context_manager.get_session(session_id)

    async def close_session(self, session_id: str) -> None:
        await self.context_manager.close_session(session_id)

    async def update_context(
        self,
        session_id: str,
        message: Message,
        intent: Optional[Intent] = None,
        entities: Optional[list[Entity]] = None,
    ) -> Context:
        return await self.context_manager.update_context(session_id, message, intent, entities)

    async def find_relevant_context(
        self, session_id: str, query: str, limit: Optional[int] = None
    ) -> list[Knowledge]:
        return await self.context_manager.find_relevant_context(session_id, query, limit)

    # ==================================================================
    ## Reasoning
    # ==================================================================

    async def process_request(
        self,
        session_id: str,
        message: Message,
        requires_reasoning: bool = False,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> ReasoningResult:
        return await self.reasoning_engine.process_request(
            session_id, message, requires_reasoning, cancellation_token
        )

    async def _commit_user_message(self, session_id: str, content: str) -> tuple[Message, Intent]:
        """Analyze and append an inbound user message."""
        session = await self.context_manager.snapshot(session_id)
        analysis = await self.reasoning_engine.analyze_request(content, session)
        intent = analysis.primary_intent

        message = Message(
            session_id=session_id,
            role=MessageRole.USER,
            content=content,
            metadata=SelectionMetadata(
                intent=intent,
                entities=analysis.entities,
                confidence=intent.confidence,
            ),
        )
        await self.context_manager.update_context(
            session_id, message, intent=intent, entities=analysis.entities
        )
        return message, intent

    async def handle_message(
        self,
        session_id: str,
        content: str,
        requires_reasoning: bool = False,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> ReasoningResult:
        """
        Full round trip for one user message.

        The user message is committed first, the reasoning engine runs
        without holding the session lock, then the reply is committed.

        Raises:
            NotFoundError: Unknown session
            ValidationError: Empty content
            ExternalServiceError: A commit could not be persisted
        """
        message, _ = await self._commit_user_message(session_id, content)

        result = await self.reasoning_engine.process_request(
            session_id, message, requires_reasoning, cancellation_token
        )

        if result.response is not None:
            await self.context_manager.update_context(session_id, result.response)
        return result

    async def stream_message(
        self,
        session_id: str,
        content: str,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream a single agent's reply to a user message.

        Delivery stops as soon as the cancellation token is set or the
        consumer closes the generator. Whatever text was delivered is
        committed as the assistant message, with finish_reason "stop",
        "cancelled" or "error"; nothing is committed if nothing was delivered.

        Yields:
            StreamStartEvent, StreamChunkEvent*, then StreamDoneEvent or
            StreamErrorEvent (not emitted if the consumer closed early)
        """
        slog = bind_session(log, session_id)
        message, intent = await self._commit_user_message(session_id, content)

        agent = await self.agent_manager.select_best_agent(session_id, message, intent)
        request = await self.agent_manager.prepare_generation(agent, session_id, message)

        yield StreamStartEvent(session_id=session_id, agent_id=agent.id, agent_name=agent.name)

        delivered: list[str] = []
        finish_reason = "stop"
        completed = False
        error: Optional[Exception] = None
        cost = 0.0
        committed: Optional[Message] = None
        start_time = time.perf_counter()
        stream = self.llm.stream(request.prompt, request.options)

        try:
            async for chunk in stream:
                if cancellation_token is not None and cancellation_token.is_set():
                    finish_reason = "cancelled"
                    break
                if chunk.finished:
                    cost = chunk.cost
                    continue
                if chunk.content:
                    # Recorded before the yield: once yielded, the caller has it
                    delivered.append(chunk.content)
                    yield StreamChunkEvent(content=chunk.content)
            completed = True
        except Exception as e:
            finish_reason = "error"
            error = e
            slog.error(f"Streaming failed for {agent.name}: {e}")
        finally:
            if not completed and error is None:
                finish_reason = "cancelled"
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
            committed = await self._commit_stream(
                session_id,
                agent,
                delivered,
                finish_reason,
                cost,
                time.perf_counter() - start_time,
                request.prompt,
            )

        if error is not None:
            yield StreamErrorEvent(
                error=str(error),
                message=committed,
                details=getattr(error, "details", {}),
            )
        else:
            yield StreamDoneEvent(finish_reason=finish_reason, message=committed, cost=cost)

    async def _commit_stream(
        self,
        session_id: str,
        agent: Agent,
        delivered: list[str],
        finish_reason: str,
        cost: float,
        processing_time: float,
        prompt: str,
    ) -> Optional[Message]:
        if finish_reason == "error":
            await self.agent_manager.record_error(agent.id)
        else:
            await self.agent_manager.record_response(agent.id, processing_time)

        content = "".join(delivered)
        if not content.strip():
            return None

        message = Message(
            session_id=session_id,
            role=MessageRole.ASSISTANT,
            content=content,
            metadata=ResponseMetadata(
                model=agent.model,
                agent_id=agent.id,
                agent_name=agent.name,
                agent_role=agent.role,
                tokens=estimate_tokens(f"{prompt} {content}"),
                cost=cost,
                processing_time=processing_time,
                confidence=RESPONSE_CONFIDENCE,
                finish_reason=finish_reason,
            ),
        )
        await self.context_manager.update_context(session_id, message)
        bind_session(log, session_id).info(
            f"Committed streamed reply ({len(delivered)} chunks, finish_reason={finish_reason})"
        )
        return message

    # ==================================================================
    ## Agents
    # ==================================================================

    def get_agent(self, agent_id: str) -> Agent:
        return self.agent_manager.get_agent(agent_id)

    def get_active_agents(self) -> list[Agent]:
        return self.agent_manager.get_active_agents()

    def get_performance_metrics(self) -> dict[str, AgentPerformance]:
        return self.agent_manager.get_performance_metrics()
