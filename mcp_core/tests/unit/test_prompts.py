"""
Tests for mcp_core.agent.prompts
"""

from mcp_core.agent.catalog import default_agents
from mcp_core.agent.prompts import (
    NO_CONTEXT,
    build_contextual_prompt,
    build_subtask_prompt,
    build_system_prompt,
)
from mcp_core.types import Knowledge, UserPreferences

from conftest import user_message


class TestSystemPrompt:
    def test_includes_persona_and_preferences(self):
        agent = default_agents()[0]
        preferences = UserPreferences.merged({"ai": {"response_style": "concise"}})

        prompt = build_system_prompt(agent, preferences)

        assert prompt.startswith("Eres FLOWI CEO, ")
        assert "- Tono: professional" in prompt
        assert "- Estilo de respuesta: concise" in prompt
        assert "conversacion_general" in prompt


class TestContextualPrompt:
    def test_without_context_or_history(self):
        prompt = build_contextual_prompt([], [], "hola")
        assert prompt == f"CONTEXTO RELEVANTE:\n{NO_CONTEXT}\n\nSOLICITUD ACTUAL:\nhola"

    def test_snippets_are_truncated(self):
        knowledge = Knowledge(title="Informe", content="a" * 300)
        prompt = build_contextual_prompt([knowledge], [], "hola")
        assert f"- Informe: {'a' * 200}..." in prompt
        assert "a" * 201 not in prompt

    def test_history_lines(self):
        prompt = build_contextual_prompt([], [user_message("s1", "uno")], "dos")
        assert "HISTORIAL RECIENTE:\nuser: uno" in prompt


class TestSubtaskPrompt:
    def test_first_step(self):
        prompt = build_subtask_prompt(1, 3, "Planificar", "crear un post")
        assert prompt == "Sub-tarea 1 de 3: Planificar\n\nSolicitud original del usuario:\ncrear un post"

    def test_previous_output_truncated(self):
        prompt = build_subtask_prompt(2, 3, "Generar", "crear", previous_output="b" * 600)
        assert prompt.endswith("Resultado del paso anterior:\n" + "b" * 500)
