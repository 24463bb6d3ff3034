from mcp_core.reasoning.patterns import GENERIC_SUBTASKS, SUBTASK_TEMPLATES
from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.state import Decomposition, RequestAnalysis, SubTask
from mcp_core.utils.logger import get_logger

logger = get_logger(__name__)


DECOMPOSITION_CONFIDENCE = 0.8


class DecomposePhase(Phase):
    """Expands detected intents into ordered sub-tasks.

    Intents are expanded in detection order using SUBTASK_TEMPLATES. Intents
    without a template contribute nothing; when no sub-task results at all,
    the generic three-step template is used.
    """

    async def run(self, input: RequestAnalysis) -> Decomposition:
        planned: list[tuple[str, str]] = []
        for intent in input.intents:
            for description in SUBTASK_TEMPLATES.get(intent.name, ()):
                planned.append((intent.name, description))

        generic = not planned
        if generic:
            intent_name = input.primary_intent.name
            planned = [(intent_name, description) for description in GENERIC_SUBTASKS]

        subtasks = [
            SubTask(id=f"subtask_{order}", description=description, intent=intent, order=order)
            for order, (intent, description) in enumerate(planned, start=1)
        ]

        logger.info(
            f"Decompose phase: {len(subtasks)} sub-tasks "
            f"({'generic template' if generic else ', '.join(input.intent_names)})"
        )

        return Decomposition(
            subtasks=subtasks,
            confidence=DECOMPOSITION_CONFIDENCE,
            reasoning=(
                "Plantilla genérica aplicada"
                if generic
                else f"Descomposición basada en intenciones: {', '.join(input.intent_names)}"
            ),
        )
