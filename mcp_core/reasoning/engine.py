"""
Reasoning Engine

State machine per request:

    ANALYZE -> SIMPLE:  SELECT_AGENT -> GENERATE -> RETURN
            -> COMPLEX: DECOMPOSE -> DEPENDENCY_ANALYSIS -> PLAN
                        -> EXECUTE -> SYNTHESIZE -> RECOMMEND -> RETURN

The complex path is taken when complexity exceeds the threshold, when more
than one intent is detected, or when the caller asks for it.
"""

import asyncio
import time
from typing import Iterable, Optional

from mcp_core.agent.manager import AgentManager
from mcp_core.agent.prompts import DEGRADED_RESPONSE
from mcp_core.config import Settings
from mcp_core.context.manager import ContextManager
from mcp_core.errors import NotFoundError, ValidationError
from mcp_core.observers import ReasoningObserver, notify
from mcp_core.reasoning.phases import (
    AnalyzePhase,
    DecomposePhase,
    DependencyPhase,
    ExecutePhase,
    PlanPhase,
    RecommendPhase,
    SynthesizePhase,
)
from mcp_core.reasoning.state import (
    AnalyzeInput,
    ExecuteInput,
    ExecutionStep,
    ReasoningStage,
    RecommendInput,
    RequestAnalysis,
)
from mcp_core.types import (
    ErrorMetadata,
    Message,
    MessageRole,
    ReasoningMetadata,
    ReasoningResult,
    ReasoningStep,
    ResponseMetadata,
    Session,
)
from mcp_core.utils.cache import BoundedCache
from mcp_core.utils.logger import bind_session, get_logger

logger = get_logger(__name__)


SYNTHESIS_AGENT_ID = "reasoning_engine"
SYNTHESIS_AGENT_NAME = "Reasoning Engine"


class _StepForwarder:
    """Adapts execute-phase callbacks to reasoning observers."""

    def __init__(self, observers: list[ReasoningObserver], session_id: str):
        self.observers = observers
        self.session_id = session_id

    def on_subtask_complete(self, step: ExecutionStep, reasoning_step: ReasoningStep) -> None:
        notify(self.observers, "on_step_completed", self.session_id, reasoning_step)


class ReasoningEngine:
    def __init__(
        self,
        context_manager: ContextManager,
        agent_manager: AgentManager,
        settings: Optional[Settings] = None,
        observers: Optional[Iterable[ReasoningObserver]] = None,
    ):
        self.settings = settings or Settings()
        self.context_manager = context_manager
        self.agent_manager = agent_manager
        self.observers: list[ReasoningObserver] = list(observers or [])

        self.analyze_phase = AnalyzePhase()
        self.decompose_phase = DecomposePhase()
        self.dependency_phase = DependencyPhase()
        self.plan_phase = PlanPhase()
        self.execute_phase = ExecutePhase(agent_manager)
        self.synthesize_phase = SynthesizePhase()
        self.recommend_phase = RecommendPhase()

        self._cache: BoundedCache[tuple[str, str], ReasoningResult] = BoundedCache(
            self.settings.reasoning_cache_size
        )

    def add_observer(self, observer: ReasoningObserver) -> None:
        self.observers.append(observer)

    # ==================================================================
    ## Entry points
    # ==================================================================

    async def analyze_request(self, content: str, session: Session) -> RequestAnalysis:
        return await self.analyze_phase.run(AnalyzeInput(content=content, session=session))

    def should_use_complex_path(
        self, analysis: RequestAnalysis, requires_reasoning: bool = False
    ) -> bool:
        return (
            requires_reasoning
            or analysis.complexity > self.settings.complexity_threshold
            or len(analysis.intents) > 1
        )

    async def process_request(
        self,
        session_id: str,
        message: Message,
        requires_reasoning: bool = False,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> ReasoningResult:
        """
        Produce a reasoning result (and reply) for a message.

        The session is read through a snapshot; nothing is committed here.

        Args:
            session_id: Target session
            message: Message to answer
            requires_reasoning: Force the multi-step path
            cancellation_token: Stops sub-task execution between steps

        Returns:
            ReasoningResult. Unexpected failures yield success=False with
            confidence 0 instead of raising.

        Raises:
            NotFoundError: Unknown session
            ValidationError: Empty message or mismatched session id
        """
        log = bind_session(logger, session_id)
        cache_key = (session_id, message.id)
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug(f"Reasoning cache hit for message {message.id}")
            hit = cached.model_copy(deep=True)
            if hit.metadata is not None:
                hit.metadata.cached = True
            return hit

        start_time = time.perf_counter()

        try:
            session = await self.context_manager.snapshot(session_id)
            self._validate(session_id, message)

            self._enter(session_id, ReasoningStage.ANALYZE)
            analysis = await self.analyze_request(message.content, session)
            analysis_step = ReasoningStep(
                type="analysis",
                description="Análisis de intención, entidades y complejidad",
                input={"content": message.content},
                output={
                    "intents": analysis.intent_names,
                    "entities": [entity.type for entity in analysis.entities],
                    "complexity": analysis.complexity,
                    "domain": analysis.domain,
                },
                confidence=analysis.primary_intent.confidence,
            )
            self._step_done(session_id, analysis_step)

            if self.should_use_complex_path(analysis, requires_reasoning):
                result = await self._complex_path(
                    session_id, message, analysis, analysis_step, cancellation_token
                )
            else:
                result = await self._simple_path(session_id, message, analysis, analysis_step)

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            log.error(f"Error in reasoning process: {e}")
            return ReasoningResult(
                success=False,
                confidence=0.0,
                reasoning="Error en el proceso de razonamiento",
                processing_time=time.perf_counter() - start_time,
                error=str(e),
            )

        result.processing_time = time.perf_counter() - start_time
        # Degraded results are retried on the next call
        if result.success:
            self._cache.put(cache_key, result.model_copy(deep=True))

        log.info(
            f"Reasoning completed ({result.metadata.path if result.metadata else '-'}): "
            f"confidence={result.confidence:.2f}, steps={len(result.steps)}"
        )
        notify(self.observers, "on_reasoning_completed", session_id, result)
        return result

    def get_cached_result(self, session_id: str, message_id: str) -> Optional[ReasoningResult]:
        cached = self._cache.get((session_id, message_id))
        return cached.model_copy(deep=True) if cached else None

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _validate(self, session_id: str, message: Message) -> None:
        if not message.content or not message.content.strip():
            raise ValidationError("Message content must not be empty", {"message_id": message.id})
        if message.session_id != session_id:
            raise ValidationError(
                f"Message {message.id} belongs to session {message.session_id}, not {session_id}",
                {"message_id": message.id, "session_id": message.session_id},
            )

    def _enter(self, session_id: str, stage: ReasoningStage) -> None:
        bind_session(logger, session_id).debug(f"Reasoning stage: {stage.value}")

    def _step_done(self, session_id: str, step: ReasoningStep) -> None:
        notify(self.observers, "on_step_completed", session_id, step)

    # ==================================================================
    ## Simple path
    # ==================================================================

    async def _simple_path(
        self,
        session_id: str,
        message: Message,
        analysis: RequestAnalysis,
        analysis_step: ReasoningStep,
    ) -> ReasoningResult:
        self._enter(session_id, ReasoningStage.SELECT_AGENT)
        agent = await self.agent_manager.select_best_agent(
            session_id, message, analysis.primary_intent
        )
        selection_step = ReasoningStep(
            type="agent_selection",
            description=f"Selección de agente: {agent.name}",
            input={"intent": analysis.primary_intent.name},
            output={"agent_id": agent.id, "agent_role": agent.role.value},
            confidence=analysis.primary_intent.confidence,
        )
        self._step_done(session_id, selection_step)

        self._enter(session_id, ReasoningStage.GENERATE)
        response = await self.agent_manager.process_with_agent(agent, session_id, message)
        confidence = response.confidence or 0.0
        generation_step = ReasoningStep(
            type="response_generation",
            description=f"Respuesta directa usando agente {agent.name}",
            input={"content": message.content},
            output={"content": response.content, "degraded": response.is_degraded},
            confidence=confidence,
            duration=getattr(response.metadata, "processing_time", 0.0),
        )
        self._step_done(session_id, generation_step)

        recommendations = await self.recommend_phase.run(
            RecommendInput(
                analysis=analysis,
                complex_path=False,
                agent_role=agent.role.value,
                agent_name=agent.name,
            )
        )
        self._enter(session_id, ReasoningStage.RETURN)

        return ReasoningResult(
            success=not response.is_degraded,
            confidence=confidence,
            reasoning=f"Procesado por {agent.name} especializado en {agent.role.value}",
            steps=[analysis_step, selection_step, generation_step],
            recommendations=recommendations,
            error=getattr(response.metadata, "error", None) if response.is_degraded else None,
            metadata=ReasoningMetadata(
                path="simple",
                complexity=analysis.complexity,
                domain=analysis.domain,
                intents=analysis.intent_names,
                agent_id=agent.id,
            ),
            response=response,
        )

    # ==================================================================
    ## Complex path
    # ==================================================================

    async def _complex_path(
        self,
        session_id: str,
        message: Message,
        analysis: RequestAnalysis,
        analysis_step: ReasoningStep,
        cancellation_token: Optional[asyncio.Event],
    ) -> ReasoningResult:
        steps = [analysis_step]
        confidence = 1.0

        # 1. Decompose
        self._enter(session_id, ReasoningStage.DECOMPOSE)
        decomposition = await self.decompose_phase.run(analysis)
        steps.append(
            ReasoningStep(
                type="decomposition",
                description="Descomposición del problema en sub-tareas",
                input={"content": message.content},
                output={"subtasks": [s.description for s in decomposition.subtasks]},
                confidence=decomposition.confidence,
            )
        )
        self._step_done(session_id, steps[-1])
        confidence *= decomposition.confidence

        # 2. Dependencies
        self._enter(session_id, ReasoningStage.DEPENDENCY_ANALYSIS)
        subtasks = await self.dependency_phase.run(decomposition.subtasks)
        steps.append(
            ReasoningStep(
                type="dependency_analysis",
                description="Análisis de dependencias entre sub-tareas",
                input={"subtasks": [s.id for s in subtasks]},
                output={"dependencies": {s.id: s.depends_on for s in subtasks}},
                confidence=0.9,
            )
        )
        self._step_done(session_id, steps[-1])

        # 3. Plan
        self._enter(session_id, ReasoningStage.PLAN)
        plan = await self.plan_phase.run(subtasks)
        steps.append(
            ReasoningStep(
                type="planning",
                description="Creación del plan de ejecución",
                input={"subtasks": len(subtasks)},
                output={"plan": plan.description},
                confidence=plan.confidence,
            )
        )
        self._step_done(session_id, steps[-1])
        confidence *= plan.confidence

        # 4. Execute
        self._enter(session_id, ReasoningStage.EXECUTE)
        outcome = await self.execute_phase.run(
            ExecuteInput(
                session_id=session_id,
                request=message,
                plan=plan,
                cancellation_token=cancellation_token,
            ),
            callbacks=_StepForwarder(self.observers, session_id),
        )
        steps.extend(outcome.steps)
        confidence *= outcome.overall_confidence

        # 5. Synthesize
        self._enter(session_id, ReasoningStage.SYNTHESIZE)
        synthesis = await self.synthesize_phase.run(outcome.results)
        steps.append(
            ReasoningStep(
                type="synthesis",
                description="Síntesis de resultados parciales",
                input={"results": len(outcome.results)},
                output={"summary": synthesis.summary},
                confidence=synthesis.confidence,
            )
        )
        self._step_done(session_id, steps[-1])

        # 6. Recommend
        self._enter(session_id, ReasoningStage.RECOMMEND)
        recommendations = await self.recommend_phase.run(
            RecommendInput(analysis=analysis, complex_path=True)
        )

        self._enter(session_id, ReasoningStage.RETURN)
        confidence = min(max(confidence, 0.0), 1.0)
        response = self._synthesized_response(session_id, synthesis, outcome, confidence)

        return ReasoningResult(
            success=True,
            confidence=confidence,
            reasoning=synthesis.summary,
            steps=steps,
            recommendations=recommendations,
            metadata=ReasoningMetadata(
                path="complex",
                complexity=analysis.complexity,
                domain=analysis.domain,
                intents=analysis.intent_names,
                subtask_count=len(plan.steps),
            ),
            response=response,
        )

    def _synthesized_response(self, session_id, synthesis, outcome, confidence) -> Message:
        if synthesis.successful == 0:
            errors = "; ".join(r.error for r in outcome.results if r.error)
            return Message(
                session_id=session_id,
                role=MessageRole.ASSISTANT,
                content=DEGRADED_RESPONSE,
                metadata=ErrorMetadata(
                    agent_id=SYNTHESIS_AGENT_ID,
                    error=errors or "no sub-task succeeded",
                ),
            )

        return Message(
            session_id=session_id,
            role=MessageRole.ASSISTANT,
            content=synthesis.summary,
            metadata=ResponseMetadata(
                model=self.settings.default_model,
                agent_id=SYNTHESIS_AGENT_ID,
                agent_name=SYNTHESIS_AGENT_NAME,
                tokens=sum(r.tokens for r in outcome.results),
                cost=sum(r.cost for r in outcome.results),
                confidence=confidence,
            ),
        )
