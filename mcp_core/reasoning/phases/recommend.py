from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.state import RecommendInput
from mcp_core.types import Recommendation


SPLIT_THRESHOLD = 0.8


class RecommendPhase(Phase):
    """Rule-based follow-up suggestions."""

    async def run(self, input: RecommendInput) -> list[Recommendation]:
        recommendations = []

        if not input.complex_path:
            if input.agent_name:
                recommendations.append(
                    Recommendation(
                        type="agent_suggestion",
                        title=f"Especialización en {input.agent_role}",
                        description=f"Para consultas similares, {input.agent_name} es tu mejor opción",
                        priority="low",
                        confidence=0.8,
                    )
                )
            return recommendations

        if input.analysis.complexity > SPLIT_THRESHOLD:
            recommendations.append(
                Recommendation(
                    type="optimization",
                    title="Optimización de proceso",
                    description=(
                        "Considera dividir solicitudes complejas en pasos más "
                        "pequeños para mejores resultados"
                    ),
                    priority="medium",
                    confidence=0.7,
                )
            )

        if input.analysis.domain == "automation":
            recommendations.append(
                Recommendation(
                    type="workflow",
                    title="Automatización avanzada",
                    description="Puedes crear workflows automatizados para repetir este proceso",
                    priority="high",
                    confidence=0.8,
                )
            )

        return recommendations
