"""
Tests for mcp_core.types and mcp_core.errors
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from mcp_core.errors import ExternalServiceError, NotFoundError
from mcp_core.types import (
    AgentPerformance,
    ErrorMetadata,
    Intent,
    Message,
    MessageRole,
    Pattern,
    ResponseMetadata,
    SelectionMetadata,
    Session,
    UserPreferences,
    new_id,
)


class TestIds:
    def test_new_id_prefix(self):
        assert new_id("msg").startswith("msg_")

    def test_new_id_unique(self):
        assert len({new_id("msg") for _ in range(100)}) == 100


class TestMessage:
    def test_selection_metadata_accessors(self):
        message = Message(
            session_id="s1",
            role=MessageRole.USER,
            content="hola",
            metadata=SelectionMetadata(intent=Intent(name="general", confidence=0.6), confidence=0.6),
        )
        assert message.intent.name == "general"
        assert message.confidence == 0.6
        assert message.entities == []
        assert not message.is_degraded

    def test_error_metadata_is_degraded(self):
        message = Message(
            session_id="s1",
            role=MessageRole.ASSISTANT,
            content="...",
            metadata=ErrorMetadata(agent_id="agent_x", error="boom"),
        )
        assert message.is_degraded
        assert message.confidence == 0.0

    def test_metadata_round_trips_through_discriminator(self):
        message = Message(
            session_id="s1",
            role=MessageRole.ASSISTANT,
            content="respuesta",
            metadata=ResponseMetadata(model="m", agent_id="a", agent_name="A", tokens=3),
        )
        restored = Message.model_validate_json(message.model_dump_json())
        assert isinstance(restored.metadata, ResponseMetadata)
        assert restored.metadata.tokens == 3

    def test_no_metadata(self):
        message = Message(session_id="s1", role=MessageRole.USER, content="hola")
        assert message.confidence is None
        assert message.intent is None


class TestConstraints:
    def test_confidence_out_of_range(self):
        with pytest.raises(PydanticValidationError):
            Intent(name="x", confidence=1.5)

    def test_negative_interactions_rejected(self):
        with pytest.raises(PydanticValidationError):
            AgentPerformance(total_interactions=-1)

    def test_pattern_is_frozen(self):
        pattern = Pattern(id="time_9", type="temporal", pattern="active_hour_9", frequency=1, confidence=1.0)
        with pytest.raises(PydanticValidationError):
            pattern.frequency = 2


class TestUserPreferences:
    def test_defaults(self):
        preferences = UserPreferences.merged(None)
        assert preferences.language == "es"
        assert preferences.ai.response_style == "balanced"

    def test_merged_keeps_nested_defaults(self):
        preferences = UserPreferences.merged({"language": "en", "ai": {"creativity": 0.2}})
        assert preferences.language == "en"
        assert preferences.ai.creativity == 0.2
        assert preferences.ai.formality == 0.5


class TestSession:
    def test_defaults(self):
        session = Session(user_id="u1")
        assert session.is_active
        assert session.context.current_intent.name == "general"
        assert session.context.conversation_history == []


class TestErrors:
    def test_not_found_to_dict(self):
        error = NotFoundError("session", "abc")
        assert error.to_dict() == {
            "code": "NOT_FOUND",
            "message": "Session not found: abc",
            "details": {"resource": "session", "id": "abc"},
        }

    def test_external_service_details(self):
        error = ExternalServiceError("down", service="llm", details={"model": "m"})
        assert error.details == {"service": "llm", "model": "m"}
        assert error.service == "llm"
