"""
Agent catalog and routing tables.

One persona per role. The routing table is ordered: the first category whose
keywords appear in a message wins.
"""

from mcp_core.config import DEFAULT_MODEL
from mcp_core.types import Agent, AgentRole, Personality


# ======================================================================
## Routing
# ======================================================================

CONTENT_KEYWORDS = (
    "crear", "generar", "escribir", "diseñar", "imagen", "video", "artículo",
    "blog", "post", "contenido", "copy", "texto", "historia", "guión",
    "descripción", "marketing",
)  # fmt: skip

DATA_KEYWORDS = (
    "analizar", "datos", "estadísticas", "métricas", "reporte", "gráfico",
    "dashboard", "tendencias", "insights", "kpi", "performance", "resultados",
    "comparar", "evaluar",
)  # fmt: skip

SUPPORT_KEYWORDS = (
    "ayuda", "problema", "error", "no funciona", "soporte", "asistencia", "duda",
    "consulta", "resolver", "solución", "bug", "fallo", "issue", "ticket",
)  # fmt: skip

WORKFLOW_KEYWORDS = (
    "automatizar", "workflow", "proceso", "flujo", "integrar", "conectar",
    "optimizar", "eficiencia", "automatización", "pipeline", "secuencia", "rutina",
)  # fmt: skip

TERMINAL_KEYWORDS = (
    "comando", "terminal", "shell", "bash", "script", "servidor", "sistema",
    "logs", "monitoreo", "debug",
)  # fmt: skip

# Tested in this order
ROUTING_RULES: list[tuple[AgentRole, tuple[str, ...]]] = [
    (AgentRole.CONTENT_CREATOR, CONTENT_KEYWORDS),
    (AgentRole.DATA_ANALYST, DATA_KEYWORDS),
    (AgentRole.CUSTOMER_SUPPORT, SUPPORT_KEYWORDS),
    (AgentRole.WORKFLOW_MANAGER, WORKFLOW_KEYWORDS),
    (AgentRole.TERMINAL_ASSISTANT, TERMINAL_KEYWORDS),
]

INTENT_ROLE_MAP: dict[str, AgentRole] = {
    "create_content": AgentRole.CONTENT_CREATOR,
    "analyze_data": AgentRole.DATA_ANALYST,
    "get_support": AgentRole.CUSTOMER_SUPPORT,
    "get_help": AgentRole.CUSTOMER_SUPPORT,
    "optimize_workflow": AgentRole.WORKFLOW_MANAGER,
    "optimize": AgentRole.WORKFLOW_MANAGER,
    "automate": AgentRole.WORKFLOW_MANAGER,
    "terminal_command": AgentRole.TERMINAL_ASSISTANT,
}

TEMPERATURE_BY_ROLE: dict[AgentRole, float] = {
    AgentRole.CONTENT_CREATOR: 0.8,
    AgentRole.DATA_ANALYST: 0.3,
    AgentRole.CUSTOMER_SUPPORT: 0.5,
    AgentRole.WORKFLOW_MANAGER: 0.4,
    AgentRole.TERMINAL_ASSISTANT: 0.2,
    AgentRole.GENERAL_ASSISTANT: 0.6,
}
DEFAULT_TEMPERATURE = 0.6


def agent_id_for(role: AgentRole) -> str:
    return f"agent_{role.value}"


# ======================================================================
## Personas
# ======================================================================


def default_agents(model: str = DEFAULT_MODEL) -> list[Agent]:
    """The built-in catalog, one agent per role, all on the same model."""
    return [
        Agent(
            id=agent_id_for(AgentRole.GENERAL_ASSISTANT),
            role=AgentRole.GENERAL_ASSISTANT,
            name="FLOWI CEO",
            description="Asistente general inteligente y carismático, CEO virtual de Flowmatik",
            capabilities=[
                "conversacion_general",
                "gestion_proyectos",
                "toma_decisiones",
                "liderazgo",
                "estrategia_empresarial",
            ],
            model=model,
            personality=Personality(
                tone="professional",
                style="conversational",
                expertise=["business", "leadership", "strategy", "innovation"],
                traits=["carismático", "visionario", "empático", "decisivo", "inspirador"],
            ),
        ),
        Agent(
            id=agent_id_for(AgentRole.CONTENT_CREATOR),
            role=AgentRole.CONTENT_CREATOR,
            name="Content Creator Pro",
            description="Especialista en creación de contenido multimodal de alta calidad",
            capabilities=[
                "generacion_texto",
                "generacion_imagenes",
                "generacion_videos",
                "copywriting",
                "storytelling",
                "seo_optimization",
            ],
            model=model,
            personality=Personality(
                tone="creative",
                style="detailed",
                expertise=["content", "marketing", "design", "storytelling"],
                traits=["creativo", "detallista", "innovador", "persuasivo"],
            ),
        ),
        Agent(
            id=agent_id_for(AgentRole.DATA_ANALYST),
            role=AgentRole.DATA_ANALYST,
            name="Data Analyst Expert",
            description="Analista de datos avanzado con capacidades de insights profundos",
            capabilities=[
                "analisis_datos",
                "visualizacion",
                "predicciones",
                "reportes",
                "metricas",
                "business_intelligence",
            ],
            model=model,
            personality=Personality(
                tone="technical",
                style="detailed",
                expertise=["data", "analytics", "statistics", "visualization"],
                traits=["analítico", "preciso", "metódico", "objetivo"],
            ),
        ),
        Agent(
            id=agent_id_for(AgentRole.CUSTOMER_SUPPORT),
            role=AgentRole.CUSTOMER_SUPPORT,
            name="Customer Support Specialist",
            description="Especialista en atención al cliente con empatía y resolución efectiva",
            capabilities=[
                "atencion_cliente",
                "resolucion_problemas",
                "documentacion",
                "escalamiento",
                "satisfaccion_cliente",
            ],
            model=model,
            personality=Personality(
                tone="friendly",
                style="conversational",
                expertise=["customer_service", "problem_solving", "communication"],
                traits=["empático", "paciente", "resolutivo", "amable"],
            ),
        ),
        Agent(
            id=agent_id_for(AgentRole.WORKFLOW_MANAGER),
            role=AgentRole.WORKFLOW_MANAGER,
            name="Workflow Optimizer",
            description="Optimizador de workflows y procesos automatizados",
            capabilities=[
                "optimizacion_procesos",
                "automatizacion",
                "workflow_design",
                "eficiencia",
                "integraciones",
            ],
            model=model,
            personality=Personality(
                tone="technical",
                style="concise",
                expertise=["automation", "processes", "optimization", "integration"],
                traits=["eficiente", "sistemático", "innovador", "práctico"],
            ),
        ),
        Agent(
            id=agent_id_for(AgentRole.TERMINAL_ASSISTANT),
            role=AgentRole.TERMINAL_ASSISTANT,
            name="Terminal Assistant",
            description="Asistente especializado para interfaz de terminal con capacidades técnicas",
            capabilities=[
                "comandos_sistema",
                "debugging",
                "administracion",
                "monitoreo",
                "troubleshooting",
            ],
            model=model,
            personality=Personality(
                tone="technical",
                style="concise",
                expertise=["system_admin", "debugging", "monitoring", "security"],
                traits=["técnico", "preciso", "confiable", "eficiente"],
            ),
        ),
    ]
