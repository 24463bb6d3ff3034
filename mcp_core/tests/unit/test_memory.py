"""
Tests for mcp_core.context.memory

Covers:
- Pattern detection (temporal, content, intent)
- Preference extraction
- Summaries and knowledge
- Consolidation of the memory logs
"""

from datetime import datetime, timedelta, timezone

import pytest

from mcp_core.context.memory import MemoryProcessor, MemoryUpdate, consolidate
from mcp_core.types import (
    Context,
    Entity,
    Intent,
    LongTermMemory,
    Message,
    MessageRole,
    Pattern,
    Preference,
    SelectionMetadata,
    Session,
)


def make_message(content: str, role: MessageRole = MessageRole.USER, hour: int = 9, intent=None, entities=None):
    return Message(
        session_id="s1",
        role=role,
        content=content,
        timestamp=datetime(2024, 1, 1, hour, tzinfo=timezone.utc),
        metadata=SelectionMetadata(
            intent=Intent(name=intent, confidence=0.8) if intent else None,
            entities=entities or [],
        ),
    )


def make_session(history: list[Message], message_count: int = None) -> Session:
    return Session(
        id="s1",
        user_id="u1",
        context=Context(
            conversation_history=history,
            metadata={"message_count": message_count if message_count is not None else len(history)},
        ),
    )


@pytest.fixture
def processor() -> MemoryProcessor:
    return MemoryProcessor(summary_interval=20)


# ======================================================================
# Patterns
# ======================================================================


class TestPatterns:
    def test_temporal_pattern(self, processor):
        history = [make_message("hola", hour=9), make_message("otra", hour=9), make_message("más", hour=14)]
        patterns = {p.id: p for p in processor.detect_patterns(history)}

        assert patterns["time_9"].frequency == 2
        assert patterns["time_9"].confidence == pytest.approx(2 / 3)
        assert patterns["time_14"].frequency == 1

    def test_temporal_keeps_top_three_hours(self, processor):
        history = [make_message("x", hour=h) for h in (1, 2, 3, 4, 4)]
        temporal = [p for p in processor.detect_patterns(history) if p.type == "temporal"]
        assert len(temporal) == 3
        assert temporal[0].id == "time_4"

    def test_content_pattern_needs_repetition(self, processor):
        history = [
            make_message("Necesito ideas de marketing"),
            make_message("Más sobre marketing por favor"),
        ]
        content = [p for p in processor.detect_patterns(history) if p.type == "content"]

        assert [p.id for p in content] == ["topic_marketing"]
        assert content[0].frequency == 2
        assert content[0].confidence == 1.0

    def test_intent_pattern(self, processor):
        history = [
            make_message("crear post", intent="create_content"),
            make_message("crear blog", intent="create_content"),
            make_message("analizar", intent="analyze_data"),
        ]
        intent = [p for p in processor.detect_patterns(history) if p.type == "intent"]

        assert [p.id for p in intent] == ["intent_create_content"]
        assert intent[0].confidence == pytest.approx(2 / 3)

    def test_empty_history(self, processor):
        assert processor.detect_patterns([]) == []


# ======================================================================
# Preferences
# ======================================================================


class TestPreferences:
    def test_formal_style(self, processor):
        preferences = processor.extract_preferences(make_message("Por favor, gracias"))
        style = [p for p in preferences if p.category == "communication_style"]
        assert style[0].value == "formal"
        assert style[0].confidence == 1.0

    def test_tied_style_is_not_recorded(self, processor):
        preferences = processor.extract_preferences(make_message("Hola, gracias"))
        assert not [p for p in preferences if p.category == "communication_style"]

    def test_list_format(self, processor):
        preferences = processor.extract_preferences(make_message("Necesito:\n- uno\n- dos"))
        assert any(p.category == "format_preference" and p.value == "lists" for p in preferences)

    def test_dash_inside_text_is_not_a_list(self, processor):
        preferences = processor.extract_preferences(make_message("un texto - con guion"))
        assert not [p for p in preferences if p.category == "format_preference"]

    def test_response_length(self, processor):
        concise = processor.extract_preferences(make_message("corto"))
        detailed = processor.extract_preferences(make_message("palabra " * 40))

        assert any(p.value == "concise" for p in concise if p.category == "response_length")
        assert any(p.value == "detailed" for p in detailed if p.category == "response_length")

    def test_interests(self, processor):
        preferences = processor.extract_preferences(make_message("estrategia de marketing"))
        interests = [p.value for p in preferences if p.category == "interests"]
        assert interests == ["estrategia", "marketing"]


# ======================================================================
# process()
# ======================================================================


class TestProcess:
    def test_assistant_messages_only_yield_patterns(self, processor):
        reply = make_message("Por favor revisa este contenido extenso sobre marketing digital y estrategia", role=MessageRole.ASSISTANT)
        update = processor.process(make_session([reply]), reply)

        assert update.preferences == []
        assert update.knowledge == []
        assert update.patterns

    def test_knowledge_from_long_user_message(self, processor):
        message = make_message("Quiero entender cómo funciona la segmentación de audiencias en campañas")
        update = processor.process(make_session([message]), message)

        assert len(update.knowledge) == 1
        knowledge = update.knowledge[0]
        assert knowledge.title == "User query about entender"
        assert knowledge.confidence == 0.7
        assert "segmentación" in knowledge.tags

    def test_short_message_yields_no_knowledge(self, processor):
        message = make_message("hola")
        assert processor.process(make_session([message]), message).knowledge == []

    def test_summary_on_interval(self, processor):
        history = [make_message(f"mensaje número {i} sobre ventas") for i in range(20)]
        update = processor.process(make_session(history, message_count=20), history[-1])

        assert update.summary is not None
        assert update.summary.message_count == 20
        assert update.summary.summary.startswith("Resumen de conversación con 20 mensajes sobre: ")
        assert update.summary.importance == 0.5

    def test_no_summary_off_interval(self, processor):
        history = [make_message("hola")] * 3
        assert processor.process(make_session(history, message_count=19), history[-1]).summary is None

    def test_summary_importance(self, processor):
        long_text = "x" * 150
        history = [
            make_message(long_text, entities=[Entity(type="number", value="3")])
            for _ in range(20)
        ]
        summary = processor.summarize(history)
        assert summary.importance == 1.0


# ======================================================================
# Consolidation
# ======================================================================


class TestConsolidate:
    def test_newest_pattern_per_id(self):
        now = datetime.now(timezone.utc)
        old = Pattern(id="time_9", type="temporal", pattern="p", frequency=1, confidence=0.2, last_seen=now - timedelta(hours=1))
        new = Pattern(id="time_9", type="temporal", pattern="p", frequency=5, confidence=0.9, last_seen=now)
        long_term = LongTermMemory(user_patterns=[old, new])

        consolidate(long_term)

        assert long_term.user_patterns == [new]

    def test_most_confident_preference(self):
        weak = Preference(category="communication_style", value="formal", confidence=0.5)
        strong = Preference(category="communication_style", value="formal", confidence=1.0)
        other = Preference(category="communication_style", value="casual", confidence=0.5)
        long_term = LongTermMemory(learned_preferences=[weak, strong, other])

        consolidate(long_term)

        assert len(long_term.learned_preferences) == 2
        assert strong in long_term.learned_preferences

    def test_apply_consolidates_only_with_summary(self, processor):
        pattern = Pattern(id="time_9", type="temporal", pattern="p", frequency=1, confidence=0.5)
        long_term = LongTermMemory(user_patterns=[pattern])

        MemoryUpdate(patterns=[pattern]).apply(long_term)
        assert len(long_term.user_patterns) == 2

        MemoryUpdate(summary=processor.summarize([make_message("hola")])).apply(long_term)
        assert len(long_term.user_patterns) == 1
        assert len(long_term.conversation_summaries) == 1
