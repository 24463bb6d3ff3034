"""
Tests for mcp_core.reasoning.engine

Covers:
- Path selection
- Simple path (single agent)
- Complex path (decompose, plan, execute, synthesize)
- Failure handling
- Result cache
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mcp_core.agent.catalog import agent_id_for
from mcp_core.errors import ExternalServiceError, NotFoundError, ValidationError
from mcp_core.reasoning.state import RequestAnalysis
from mcp_core.types import AgentRole, ErrorMetadata, Intent, ResponseMetadata

from conftest import user_message


COMPLEX_REQUEST = "Necesito analizar los datos de ventas y automatizar el proceso de reportes"


class TestPathSelection:
    def _analysis(self, intents: int, complexity: float) -> RequestAnalysis:
        return RequestAnalysis(
            intents=[Intent(name=f"i{n}") for n in range(intents)],
            entities=[],
            complexity=complexity,
            domain="general",
        )

    def test_simple(self, engine):
        assert not engine.should_use_complex_path(self._analysis(1, 0.3))

    def test_threshold_is_exclusive(self, engine):
        assert not engine.should_use_complex_path(self._analysis(1, 0.7))
        assert engine.should_use_complex_path(self._analysis(1, 0.71))

    def test_multiple_intents(self, engine):
        assert engine.should_use_complex_path(self._analysis(2, 0.1))

    def test_forced(self, engine):
        assert engine.should_use_complex_path(self._analysis(1, 0.1), requires_reasoning=True)


class TestSimplePath:
    @pytest.mark.asyncio
    async def test_content_request(self, engine, session, fake_llm):
        message = user_message(session.id, "Quiero crear un artículo")

        result = await engine.process_request(session.id, message)

        assert result.success
        assert result.confidence == pytest.approx(0.9)
        assert [s.type for s in result.steps] == ["analysis", "agent_selection", "response_generation"]
        assert result.metadata.path == "simple"
        assert result.metadata.agent_id == agent_id_for(AgentRole.CONTENT_CREATOR)
        assert result.metadata.intents == ["create_content"]
        assert result.response.content == "Respuesta de prueba"
        assert isinstance(result.response.metadata, ResponseMetadata)
        assert result.recommendations[0].type == "agent_suggestion"
        assert len(fake_llm.calls) == 1

    @pytest.mark.asyncio
    async def test_does_not_commit(self, engine, context_manager, session):
        await engine.process_request(session.id, user_message(session.id, "hola"))

        stored = await context_manager.get_session(session.id)
        assert stored.context.conversation_history == []

    @pytest.mark.asyncio
    async def test_degraded_generation(self, engine, session, fake_llm):
        fake_llm.error = RuntimeError("provider down")

        result = await engine.process_request(session.id, user_message(session.id, "hola"))

        assert not result.success
        assert result.confidence == 0.0
        assert result.error == "provider down"
        assert result.response.is_degraded


class TestComplexPath:
    @pytest.mark.asyncio
    async def test_multi_intent_request(self, engine, session, fake_llm):
        message = user_message(session.id, COMPLEX_REQUEST)

        result = await engine.process_request(session.id, message)

        assert result.success
        assert result.metadata.path == "complex"
        assert result.metadata.intents == ["analyze_data", "automate"]
        assert result.metadata.subtask_count == 8
        assert [s.type for s in result.steps] == [
            "analysis",
            "decomposition",
            "dependency_analysis",
            "planning",
            *["subtask_execution"] * 8,
            "synthesis",
        ]
        assert result.confidence == pytest.approx(0.8 * 0.9 * 0.9**8)
        assert len(fake_llm.calls) == 8
        assert result.reasoning.startswith("Procesamiento completado: 8/8 sub-tareas exitosas.")

        response = result.response
        assert response.metadata.agent_id == "reasoning_engine"
        assert response.metadata.agent_role is None
        assert response.metadata.tokens == 8 * 15
        assert response.metadata.confidence == pytest.approx(result.confidence)

    @pytest.mark.asyncio
    async def test_forced_reasoning_uses_generic_template(self, engine, session):
        result = await engine.process_request(
            session.id, user_message(session.id, "hola"), requires_reasoning=True
        )

        assert result.metadata.path == "complex"
        assert result.metadata.subtask_count == 3

    @pytest.mark.asyncio
    async def test_all_subtasks_fail(self, engine, session, fake_llm):
        fake_llm.error = RuntimeError("provider down")

        result = await engine.process_request(
            session.id, user_message(session.id, "hola"), requires_reasoning=True
        )

        assert result.success
        assert result.confidence == pytest.approx(0.8 * 0.9 * 0.5**3)
        assert result.response.is_degraded
        assert isinstance(result.response.metadata, ErrorMetadata)

    @pytest.mark.asyncio
    async def test_subtasks_count_interactions(self, engine, agent_manager, session):
        await engine.process_request(session.id, user_message(session.id, COMPLEX_REQUEST))

        metrics = agent_manager.get_performance_metrics()
        assert sum(p.total_interactions for p in metrics.values()) == 8

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, engine, session):
        token = asyncio.Event()
        token.set()

        with pytest.raises(asyncio.CancelledError):
            await engine.process_request(
                session.id, user_message(session.id, COMPLEX_REQUEST), cancellation_token=token
            )

    @pytest.mark.asyncio
    async def test_observers_see_every_step(self, engine, session):
        observer = MagicMock()
        engine.add_observer(observer)

        result = await engine.process_request(session.id, user_message(session.id, COMPLEX_REQUEST))

        assert observer.on_step_completed.call_count == len(result.steps)
        observer.on_reasoning_completed.assert_called_once_with(session.id, result)


class TestFailures:
    @pytest.mark.asyncio
    async def test_unknown_session(self, engine):
        with pytest.raises(NotFoundError):
            await engine.process_request("missing", user_message("missing", "hola"))

    @pytest.mark.asyncio
    async def test_mismatched_session(self, engine, session):
        with pytest.raises(ValidationError):
            await engine.process_request(session.id, user_message("other", "hola"))

    @pytest.mark.asyncio
    async def test_unexpected_error(self, engine, session):
        message = user_message(session.id, "hola")

        with patch.object(engine.analyze_phase, "run", new_callable=AsyncMock) as mock_run:
            mock_run.side_effect = RuntimeError("boom")
            result = await engine.process_request(session.id, message)

        assert not result.success
        assert result.confidence == 0.0
        assert result.reasoning == "Error en el proceso de razonamiento"
        assert result.error == "boom"
        assert engine.get_cached_result(session.id, message.id) is None


class TestCache:
    @pytest.mark.asyncio
    async def test_repeat_request_hits_cache(self, engine, session, fake_llm):
        message = user_message(session.id, "hola")

        first = await engine.process_request(session.id, message)
        second = await engine.process_request(session.id, message)

        assert len(fake_llm.calls) == 1
        assert second.response.id == first.response.id
        assert not first.metadata.cached
        assert second.metadata.cached

    @pytest.mark.asyncio
    async def test_degraded_result_is_retried(self, engine, session, fake_llm):
        message = user_message(session.id, "hola")
        fake_llm.error = ExternalServiceError("provider down", service="llm")

        failed = await engine.process_request(session.id, message)

        assert not failed.success
        assert engine.get_cached_result(session.id, message.id) is None

        fake_llm.error = None
        retried = await engine.process_request(session.id, message)

        assert retried.success
        assert not retried.response.is_degraded
        assert len(fake_llm.calls) == 2
        assert engine.get_cached_result(session.id, message.id) is not None

    @pytest.mark.asyncio
    async def test_cached_result_is_a_copy(self, engine, session):
        message = user_message(session.id, "hola")
        first = await engine.process_request(session.id, message)
        first.steps.clear()

        cached = engine.get_cached_result(session.id, message.id)

        assert len(cached.steps) == 3

    @pytest.mark.asyncio
    async def test_capacity(self, engine, session):
        messages = [user_message(session.id, f"hola {i}") for i in range(101)]
        for message in messages:
            await engine.process_request(session.id, message)

        assert engine.cache_size == 100
        assert engine.get_cached_result(session.id, messages[0].id) is None
        assert engine.get_cached_result(session.id, messages[-1].id) is not None


class TestScenarios:
    @pytest.mark.asyncio
    async def test_article_request_goes_to_content_creator(self, engine, session):
        result = await engine.process_request(
            session.id, user_message(session.id, "Quiero crear un artículo sobre IA")
        )

        assert result.metadata.agent_id == agent_id_for(AgentRole.CONTENT_CREATOR)
        assert len(result.steps) >= 1
        assert 0.0 <= result.confidence <= 1.0

    @pytest.mark.asyncio
    async def test_workflow_request_runs_every_complex_stage(self, engine, session):
        result = await engine.process_request(
            session.id, user_message(session.id, "analizar datos y optimizar el workflow completo")
        )

        types = [s.type for s in result.steps]
        assert result.metadata.path == "complex"
        assert types[1:4] == ["decomposition", "dependency_analysis", "planning"]
        assert types[-1] == "synthesis"
        assert "subtask_execution" in types[4:-1]
        assert all(0.0 <= s.confidence <= 1.0 for s in result.steps)
        assert 0.0 <= result.confidence <= 1.0
