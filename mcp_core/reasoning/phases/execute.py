import asyncio
import time
from typing import Optional, Protocol

from mcp_core.agent.manager import AgentManager
from mcp_core.agent.prompts import build_subtask_prompt
from mcp_core.observers import notify
from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.state import (
    ExecuteInput,
    ExecutionOutcome,
    ExecutionStep,
    SubTaskResult,
    SubTaskStatus,
)
from mcp_core.types import (
    Intent,
    Message,
    MessageRole,
    ReasoningStep,
    ResponseMetadata,
    SelectionMetadata,
)
from mcp_core.utils.logger import bind_session, get_logger

logger = get_logger(__name__)


FAILURE_PENALTY = 0.5


# ======================================================================
## Execute Phase Callbacks
# ======================================================================


class ExecuteCallbacks(Protocol):
    """Callbacks for sub-task execution events."""

    def on_subtask_start(self, step: ExecutionStep) -> None:
        """Called before a sub-task is delegated."""
        ...

    def on_subtask_complete(self, step: ExecutionStep, reasoning_step: ReasoningStep) -> None:
        """Called when a sub-task completes successfully."""
        ...

    def on_subtask_failed(self, step: ExecutionStep, error: str) -> None:
        """Called when a sub-task fails."""
        ...


class SubTaskFailed(Exception):
    """The agent returned a degraded response for a sub-task."""


# ======================================================================
## Execute Phase Implementation
# ======================================================================


class ExecutePhase(Phase):
    """
    Runs plan steps strictly in order, each delegated to an agent.

    The overall confidence is the product of per-step confidences. A failed
    step is recorded with confidence 0, multiplies the running confidence by
    FAILURE_PENALTY, and execution moves on to the next step.
    """

    def __init__(self, agent_manager: AgentManager):
        self.agent_manager = agent_manager

    async def run(
        self,
        input: ExecuteInput,
        callbacks: Optional[ExecuteCallbacks] = None,
    ) -> ExecutionOutcome:
        """Execute all steps of the plan.

        Args:
            input (ExecuteInput): Session, original request, plan and an
                optional cancellation token
            callbacks (Optional[ExecuteCallbacks]): Progress callbacks

        Returns:
            ExecutionOutcome: Per-step results, overall confidence and the
                reasoning steps of successful sub-tasks
        """
        log = bind_session(logger, input.session_id)
        listeners = [callbacks] if callbacks is not None else []
        total = len(input.plan.steps)

        results: list[SubTaskResult] = []
        reasoning_steps: list[ReasoningStep] = []
        overall_confidence = 1.0
        previous_output: Optional[str] = None

        log.info(f"Execute phase: running {total} steps sequentially")

        for step in input.plan.steps:
            if input.cancellation_token and input.cancellation_token.is_set():
                log.info("Execute phase: cancelled")
                raise asyncio.CancelledError("Sub-task execution cancelled")

            notify(listeners, "on_subtask_start", step)
            started = time.perf_counter()

            try:
                result = await self._execute_step(step, total, input, previous_output)
            except Exception as e:
                step.subtask.status = SubTaskStatus.FAILED
                overall_confidence *= FAILURE_PENALTY
                previous_output = None
                results.append(
                    SubTaskResult(step_id=step.id, success=False, output="", confidence=0.0, error=str(e))
                )
                log.warning(f"Step {step.order}/{total} failed: {e}")
                notify(listeners, "on_subtask_failed", step, str(e))
                continue

            step.subtask.status = SubTaskStatus.COMPLETED
            overall_confidence *= result.confidence
            previous_output = result.output
            results.append(result)

            reasoning_step = ReasoningStep(
                type="subtask_execution",
                description=f"Ejecución de sub-tarea: {step.subtask.description}",
                input={"step_id": step.id, "depends_on": step.depends_on},
                output={"agent_id": result.agent_id, "content": result.output},
                confidence=result.confidence,
                duration=time.perf_counter() - started,
            )
            reasoning_steps.append(reasoning_step)
            notify(listeners, "on_subtask_complete", step, reasoning_step)

        return ExecutionOutcome(
            results=results,
            overall_confidence=overall_confidence,
            steps=reasoning_steps,
        )

    async def _execute_step(
        self,
        step: ExecutionStep,
        total: int,
        input: ExecuteInput,
        previous_output: Optional[str],
    ) -> SubTaskResult:
        subtask = step.subtask
        intent = Intent(name=subtask.intent)

        # Route on the sub-task itself, not on the whole request
        routing = Message(
            session_id=input.session_id,
            role=MessageRole.USER,
            content=subtask.description,
        )
        agent = await self.agent_manager.select_best_agent(input.session_id, routing, intent)

        task_message = Message(
            session_id=input.session_id,
            role=MessageRole.USER,
            content=build_subtask_prompt(
                index=step.order,
                total=total,
                description=subtask.description,
                request=input.request.content,
                previous_output=previous_output,
            ),
            metadata=SelectionMetadata(intent=intent, agent_id=agent.id, agent_role=agent.role),
        )
        response = await self.agent_manager.process_with_agent(agent, input.session_id, task_message)

        if not isinstance(response.metadata, ResponseMetadata):
            error = getattr(response.metadata, "error", "") or "degraded response"
            raise SubTaskFailed(error)

        return SubTaskResult(
            step_id=step.id,
            success=True,
            output=response.content,
            confidence=response.metadata.confidence,
            agent_id=agent.id,
            tokens=response.metadata.tokens,
            cost=response.metadata.cost,
        )
