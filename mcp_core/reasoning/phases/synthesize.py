from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.state import SubTaskResult, Synthesis


class SynthesizePhase(Phase):
    """Joins successful sub-task outputs into a single summary."""

    async def run(self, input: list[SubTaskResult]) -> Synthesis:
        successful = [result for result in input if result.success]
        total = len(input)
        outputs = ". ".join(result.output for result in successful)

        return Synthesis(
            summary=(
                f"Procesamiento completado: {len(successful)}/{total} "
                f"sub-tareas exitosas. {outputs}"
            ).rstrip(),
            confidence=len(successful) / total if total else 0.0,
            successful=len(successful),
            total=total,
        )
