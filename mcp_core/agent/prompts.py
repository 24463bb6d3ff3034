from mcp_core.types import Agent, Knowledge, Message, UserPreferences

# ======================================================================
# Agent System Prompt
# ======================================================================

AGENT_SYSTEM_PROMPT = """Eres {name}, {description}.

PERSONALIDAD:
- Tono: {tone}
- Estilo: {style}
- Especialidades: {expertise}
- Características: {traits}

CAPACIDADES:
{capabilities}

PREFERENCIAS DEL USUARIO:
- Idioma: {language}
- Estilo de respuesta: {response_style}
- Nivel de creatividad: {creativity}
- Nivel de formalidad: {formality}

INSTRUCCIONES:
1. Mantén tu personalidad y especialización en todo momento
2. Adapta tu respuesta a las preferencias del usuario
3. Sé útil, preciso y relevante
4. Si la solicitud está fuera de tu especialidad, sugiere el agente apropiado
5. Usa ejemplos prácticos cuando sea apropiado
6. Mantén un tono {tone} y estilo {style}

Responde siempre en español a menos que se solicite específicamente otro idioma."""


def build_system_prompt(agent: Agent, preferences: UserPreferences) -> str:
    personality = agent.personality
    return AGENT_SYSTEM_PROMPT.format(
        name=agent.name,
        description=agent.description,
        tone=personality.tone,
        style=personality.style,
        expertise=", ".join(personality.expertise),
        traits=", ".join(personality.traits),
        capabilities=", ".join(agent.capabilities),
        language=preferences.language,
        response_style=preferences.ai.response_style,
        creativity=preferences.ai.creativity,
        formality=preferences.ai.formality,
    )


# ======================================================================
# Contextual Prompt (relevant knowledge + recent turns + request)
# ======================================================================

SNIPPET_CHARS = 200
NO_CONTEXT = "No hay contexto específico relevante."


def build_contextual_prompt(
    relevant: list[Knowledge], recent_history: list[Message], request: str
) -> str:
    """Prompt body sent as the user turn.

    Args:
        relevant: Knowledge snippets, already capped by the caller
        recent_history: Raw history turns, already capped by the caller
        request: Content of the message being answered

    Returns:
        str: sections CONTEXTO RELEVANTE / HISTORIAL RECIENTE / SOLICITUD ACTUAL
    """
    if relevant:
        context = "\n".join(
            f"- {k.title}: {k.content[:SNIPPET_CHARS]}..." for k in relevant
        )
    else:
        context = NO_CONTEXT

    prompt = f"CONTEXTO RELEVANTE:\n{context}"

    if recent_history:
        turns = "\n".join(f"{m.role.value}: {m.content}" for m in recent_history)
        prompt += f"\n\nHISTORIAL RECIENTE:\n{turns}"

    prompt += f"\n\nSOLICITUD ACTUAL:\n{request}"
    return prompt


# ======================================================================
# Fallbacks / Sub-tasks
# ======================================================================

DEGRADED_RESPONSE = (
    "Lo siento, he tenido un problema procesando tu solicitud. "
    "¿Podrías intentarlo de nuevo?"
)

SUBTASK_PROMPT = """Sub-tarea {index} de {total}: {description}

Solicitud original del usuario:
{request}"""

PREVIOUS_RESULT_CHARS = 500


def build_subtask_prompt(
    index: int,
    total: int,
    description: str,
    request: str,
    previous_output: str | None = None,
) -> str:
    prompt = SUBTASK_PROMPT.format(
        index=index, total=total, description=description, request=request
    )
    if previous_output:
        prompt += f"\n\nResultado del paso anterior:\n{previous_output[:PREVIOUS_RESULT_CHARS]}"
    return prompt
