"""
Agent Registry

Holds the role-specialized personas, routes messages to them and tracks
per-agent performance. Performance counters are shared by every session that
uses a role, so each agent's counters are only touched under its own lock.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from mcp_core.agent.catalog import (
    DEFAULT_TEMPERATURE,
    INTENT_ROLE_MAP,
    ROUTING_RULES,
    TEMPERATURE_BY_ROLE,
    default_agents,
)
from mcp_core.agent.prompts import (
    DEGRADED_RESPONSE,
    build_contextual_prompt,
    build_system_prompt,
)
from mcp_core.config import Settings
from mcp_core.context.manager import ContextManager
from mcp_core.errors import ConfigurationError, ExternalServiceError, NotFoundError
from mcp_core.model.llm import GenerationOptions, LLMClient
from mcp_core.observers import AgentObserver, notify
from mcp_core.storage.base import RelationalStore
from mcp_core.types import (
    Agent,
    AgentPerformance,
    AgentRole,
    ErrorMetadata,
    Intent,
    Message,
    MessageRole,
    ResponseMetadata,
    SessionType,
    utc_now,
)
from mcp_core.utils.logger import bind_session, get_logger

logger = get_logger(__name__)


RESPONSE_CONFIDENCE = 0.9
RELEVANT_SNIPPETS = 3
RECENT_TURNS = 5

MetricAction = Literal["selection", "response", "error"]


@dataclass
class GenerationRequest:
    """Everything needed to call the LLM on behalf of an agent."""

    agent: Agent
    prompt: str
    options: GenerationOptions


class AgentManager:
    def __init__(
        self,
        llm: LLMClient,
        context_manager: ContextManager,
        settings: Optional[Settings] = None,
        relational_store: Optional[RelationalStore] = None,
        agents: Optional[Iterable[Agent]] = None,
        observers: Optional[Iterable[AgentObserver]] = None,
    ):
        """
        Args:
            llm: Text generation capability
            context_manager: Source of session snapshots and relevant knowledge
            settings: Runtime settings (model, max tokens)
            relational_store: Where performance counters are persisted
            agents: Catalog override; defaults to the built-in personas

        Raises:
            ConfigurationError: Two active agents share a role, or no active
                general assistant is registered
        """
        self.settings = settings or Settings()
        self.llm = llm
        self.context_manager = context_manager
        self.relational_store = relational_store
        self.observers: list[AgentObserver] = list(observers or [])

        catalog = (
            list(agents)
            if agents is not None
            else default_agents(self.settings.default_model)
        )

        self._agents: dict[str, Agent] = {}
        self._by_role: dict[AgentRole, str] = {}
        for agent in catalog:
            if agent.id in self._agents:
                raise ConfigurationError(f"Duplicate agent id: {agent.id}")
            self._agents[agent.id] = agent.model_copy(deep=True)
            if not agent.is_active:
                continue
            if agent.role in self._by_role:
                raise ConfigurationError(
                    f"Duplicate active agent for role {agent.role.value}: "
                    f"{self._by_role[agent.role]}, {agent.id}"
                )
            self._by_role[agent.role] = agent.id

        if AgentRole.GENERAL_ASSISTANT not in self._by_role:
            raise ConfigurationError("No active general_assistant agent registered")

        self._locks: dict[str, asyncio.Lock] = {
            agent_id: asyncio.Lock() for agent_id in self._agents
        }

        logger.info(
            f"AgentManager initialized with {len(self._by_role)} active agents: "
            f"{', '.join(role.value for role in self._by_role)}"
        )

    def add_observer(self, observer: AgentObserver) -> None:
        self.observers.append(observer)

    # ==================================================================
    ## Routing
    # ==================================================================

    def resolve_role(
        self,
        content: str,
        session_type: SessionType = SessionType.CHAT,
        intent: Optional[Intent | str] = None,
    ) -> AgentRole:
        """
        Pick a role for a message without touching any counters.

        Keyword categories are tested in fixed order, then the intent table,
        then the general assistant. Roles without an active agent fall back
        to the general assistant.
        """
        lowered = content.lower()
        role: Optional[AgentRole] = None

        for candidate, keywords in ROUTING_RULES:
            if any(keyword in lowered for keyword in keywords):
                role = candidate
                break
            if candidate == AgentRole.TERMINAL_ASSISTANT and session_type == SessionType.TERMINAL:
                role = candidate
                break

        if role is None and intent is not None:
            name = intent.name if isinstance(intent, Intent) else intent
            role = INTENT_ROLE_MAP.get(name)

        if role is None or role not in self._by_role:
            role = AgentRole.GENERAL_ASSISTANT
        return role

    async def select_best_agent(
        self,
        session_id: str,
        message: Message,
        intent: Optional[Intent | str] = None,
    ) -> Agent:
        """
        Route a message to an agent and count the interaction.

        Args:
            session_id: Session the message belongs to
            message: Message to route
            intent: Optional classified intent, used when no keyword matches

        Returns:
            Copy of the selected agent

        Raises:
            NotFoundError: Unknown session
        """
        session = await self.context_manager.get_session(session_id)
        if session is None:
            raise NotFoundError("session", session_id)

        role = self.resolve_role(message.content, session.type, intent)
        agent_id = self._by_role[role]

        await self._update_metrics(agent_id, "selection")

        agent = self._agents[agent_id].model_copy(deep=True)
        bind_session(logger, session_id).debug(f"Routed to {agent.name} ({role.value})")
        notify(self.observers, "on_agent_selected", agent, session_id)
        return agent

    # ==================================================================
    ## Generation
    # ==================================================================

    async def prepare_generation(
        self, agent: Agent, session_id: str, message: Message
    ) -> GenerationRequest:
        """
        Build the prompt and options for an agent without calling the LLM.

        The session is read through a snapshot, so no lock is held while the
        caller talks to the LLM.

        Raises:
            NotFoundError: Unknown session
        """
        session = await self.context_manager.snapshot(session_id)

        try:
            relevant = await self.context_manager.find_relevant_context(
                session_id, message.content, RELEVANT_SNIPPETS
            )
        except Exception as e:
            bind_session(logger, session_id).warning(f"Relevant context lookup failed: {e}")
            relevant = []

        system_prompt = build_system_prompt(agent, session.context.user_preferences)
        prompt = build_contextual_prompt(
            relevant[:RELEVANT_SNIPPETS],
            session.context.conversation_history[-RECENT_TURNS:],
            message.content,
        )

        return GenerationRequest(
            agent=agent,
            prompt=prompt,
            options=GenerationOptions(
                model=agent.model,
                system_prompt=system_prompt,
                temperature=TEMPERATURE_BY_ROLE.get(agent.role, DEFAULT_TEMPERATURE),
                max_tokens=self.settings.max_tokens,
            ),
        )

    async def process_with_agent(
        self, agent: Agent, session_id: str, message: Message
    ) -> Message:
        """
        Generate an agent's reply to a message.

        Never raises for generation problems: any failure is recorded as an
        error metric and turned into a degraded assistant message carrying
        ErrorMetadata.

        Returns:
            Assistant message (not yet committed to the session)
        """
        log = bind_session(logger, session_id)
        start_time = time.perf_counter()

        try:
            request = await self.prepare_generation(agent, session_id, message)
            result = await self.llm.generate(request.prompt, request.options)
            if not result.content.strip():
                raise ExternalServiceError("LLM returned an empty response", service="llm")

            processing_time = time.perf_counter() - start_time
            response = Message(
                session_id=session_id,
                role=MessageRole.ASSISTANT,
                content=result.content,
                metadata=ResponseMetadata(
                    model=result.model or agent.model,
                    agent_id=agent.id,
                    agent_name=agent.name,
                    agent_role=agent.role,
                    tokens=result.token_usage.total_tokens,
                    cost=result.cost,
                    processing_time=processing_time,
                    confidence=RESPONSE_CONFIDENCE,
                    finish_reason=result.finish_reason,
                ),
            )
            await self.record_response(agent.id, processing_time)
            log.info(
                f"{agent.name} responded in {processing_time:.2f}s "
                f"({result.token_usage.total_tokens} tokens)"
            )
            return response

        except Exception as e:
            processing_time = time.perf_counter() - start_time
            log.error(f"Error processing with agent {agent.name}: {e}")
            await self.record_error(agent.id)
            notify(self.observers, "on_agent_error", agent, session_id, str(e))

            return Message(
                session_id=session_id,
                role=MessageRole.ASSISTANT,
                content=DEGRADED_RESPONSE,
                metadata=ErrorMetadata(
                    agent_id=agent.id,
                    processing_time=processing_time,
                    error=str(e),
                ),
            )

    # ==================================================================
    ## Performance bookkeeping
    # ==================================================================

    async def record_response(self, agent_id: str, processing_time: float) -> None:
        await self._update_metrics(agent_id, "response", processing_time)

    async def record_error(self, agent_id: str) -> None:
        await self._update_metrics(agent_id, "error")

    async def _update_metrics(
        self,
        agent_id: str,
        action: MetricAction,
        processing_time: float = 0.0,
    ) -> None:
        """
        Update one agent's running aggregates.

        - selection: total_interactions += 1
        - response: success_rate = (sr*(n-1)+1)/n; average_response_time is
          the mean of the previous average and the new sample
        - error: success_rate = sr*(n-1)/n
        """
        if agent_id not in self._agents:
            raise NotFoundError("agent", agent_id)

        async with self._locks[agent_id]:
            performance = self._agents[agent_id].performance

            if action == "selection":
                performance.total_interactions += 1
            else:
                n = max(performance.total_interactions, 1)
                rate = performance.success_rate
                if action == "response":
                    performance.success_rate = min((rate * (n - 1) + 1) / n, 1.0)
                    performance.average_response_time = (
                        performance.average_response_time + processing_time
                    ) / 2
                else:
                    performance.success_rate = max(rate * (n - 1) / n, 0.0)

            performance.last_updated = utc_now()
            snapshot = performance.model_copy()

            if self.relational_store is not None:
                try:
                    await self.relational_store.update_agent_performance(agent_id, snapshot)
                except Exception as e:
                    logger.warning(f"Failed to persist performance for {agent_id}: {e}")

    # ==================================================================
    ## Queries
    # ==================================================================

    def get_agent(self, agent_id: str) -> Agent:
        """
        Raises:
            NotFoundError: Unknown agent id
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError("agent", agent_id)
        return agent.model_copy(deep=True)

    def get_agent_by_role(self, role: AgentRole) -> Optional[Agent]:
        agent_id = self._by_role.get(role)
        return self._agents[agent_id].model_copy(deep=True) if agent_id else None

    def get_active_agents(self) -> list[Agent]:
        return [self._agents[agent_id].model_copy(deep=True) for agent_id in self._by_role.values()]

    def get_performance_metrics(self) -> dict[str, AgentPerformance]:
        return {
            agent_id: agent.performance.model_copy()
            for agent_id, agent in self._agents.items()
        }
