from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.state import ExecutionPlan, ExecutionStep, SubTask
from mcp_core.utils.logger import get_logger

logger = get_logger(__name__)


DEPENDENCY_CONFIDENCE = 0.9
PLAN_CONFIDENCE = 0.9


class DependencyPhase(Phase):
    """Links sub-tasks into a linear chain.

    Each sub-task depends on its immediate predecessor only. Parallel
    branches are not modeled.
    """

    async def run(self, input: list[SubTask]) -> list[SubTask]:
        previous = None
        for subtask in input:
            subtask.depends_on = [previous.id] if previous else []
            previous = subtask
        return input


class PlanPhase(Phase):
    """Turns the dependency chain into ordered execution steps."""

    async def run(self, input: list[SubTask]) -> ExecutionPlan:
        steps = [
            ExecutionStep(
                id=f"step_{subtask.order}",
                subtask=subtask,
                order=subtask.order,
                depends_on=(f"step_{input[index - 1].order}" if index > 0 else None),
            )
            for index, subtask in enumerate(input)
        ]

        logger.info(f"Plan phase: {len(steps)} sequential steps")

        return ExecutionPlan(
            steps=steps,
            confidence=PLAN_CONFIDENCE,
            description=" -> ".join(step.subtask.description for step in steps),
        )
