"""
Long-term memory processing.

Derives patterns, preferences, summaries and knowledge from a session's
history. The processor never touches the session: it returns a MemoryUpdate
that the ContextManager appends in one step, so a failure halfway through
leaves memory untouched.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from mcp_core.types import (
    ConversationSummary,
    Knowledge,
    LongTermMemory,
    Message,
    MessageRole,
    Pattern,
    Preference,
    Session,
)
from mcp_core.utils.logger import get_logger
from mcp_core.utils.text import (
    CASUAL_WORDS,
    FORMAL_WORDS,
    count_matches,
    extract_topics,
    sentiment_score,
)

logger = get_logger(__name__)


TOP_ACTIVE_HOURS = 3
CONTENT_WINDOW = 10
MIN_REPETITIONS = 2

LIST_MARKER_RE = re.compile(r"^\s*(?:•|-|\d+\.)\s", re.MULTILINE)
DETAILED_LENGTH = 200
CONCISE_LENGTH = 50

KNOWLEDGE_MIN_LENGTH = 50
SUMMARY_PREVIEW_CHARS = 100


@dataclass
class MemoryUpdate:
    """Records derived from one committed message."""

    patterns: list[Pattern] = field(default_factory=list)
    preferences: list[Preference] = field(default_factory=list)
    summary: Optional[ConversationSummary] = None
    knowledge: list[Knowledge] = field(default_factory=list)

    def apply(self, long_term: LongTermMemory) -> None:
        """Append to the memory logs; compact them when a summary was produced."""
        long_term.user_patterns.extend(self.patterns)
        long_term.learned_preferences.extend(self.preferences)
        long_term.knowledge_base.extend(self.knowledge)
        if self.summary is not None:
            long_term.conversation_summaries.append(self.summary)
            consolidate(long_term)


def consolidate(long_term: LongTermMemory) -> None:
    """
    Compact the pattern and preference logs.

    Patterns keep the newest record per id; preferences keep the most
    confident record per (category, value). Summaries and knowledge are
    never compacted.
    """
    newest: dict[str, Pattern] = {}
    for pattern in long_term.user_patterns:
        newest[pattern.id] = pattern
    long_term.user_patterns = list(newest.values())

    best: dict[tuple[str, str], Preference] = {}
    for preference in long_term.learned_preferences:
        key = (preference.category, preference.value)
        current = best.get(key)
        if current is None or preference.confidence > current.confidence:
            best[key] = preference
    long_term.learned_preferences = list(best.values())


class MemoryProcessor:
    def __init__(self, summary_interval: int = 20):
        self.summary_interval = summary_interval

    def process(self, session: Session, message: Message) -> MemoryUpdate:
        """
        Derive long-term records after `message` was appended to `session`.

        Args:
            session: Session whose history already contains `message`
            message: The message just appended

        Returns:
            MemoryUpdate to be applied to session.memory.long_term
        """
        history = session.context.conversation_history
        update = MemoryUpdate(patterns=self.detect_patterns(history))

        if message.role == MessageRole.USER:
            update.preferences = self.extract_preferences(message)
            knowledge = self.extract_knowledge(message)
            if knowledge is not None:
                update.knowledge.append(knowledge)

        message_count = session.context.metadata.get("message_count", len(history))
        if message_count and message_count % self.summary_interval == 0:
            update.summary = self.summarize(history[-self.summary_interval :])
            logger.debug(
                f"Conversation summary created at message {message_count} for {session.id}"
            )

        return update

    # ==================================================================
    ## Patterns
    # ==================================================================

    def detect_patterns(self, history: list[Message]) -> list[Pattern]:
        return [
            *self._temporal_patterns(history),
            *self._content_patterns(history),
            *self._intent_patterns(history),
        ]

    def _temporal_patterns(self, history: list[Message]) -> list[Pattern]:
        if not history:
            return []
        hours = Counter(message.timestamp.hour for message in history)
        return [
            Pattern(
                id=f"time_{hour}",
                type="temporal",
                pattern=f"active_hour_{hour}",
                frequency=count,
                confidence=count / len(history),
            )
            for hour, count in hours.most_common(TOP_ACTIVE_HOURS)
        ]

    def _content_patterns(self, history: list[Message]) -> list[Pattern]:
        recent = history[-CONTENT_WINDOW:]
        topics = Counter()
        for message in recent:
            topics.update(extract_topics(message.content))
        return [
            Pattern(
                id=f"topic_{topic}",
                type="content",
                pattern=f"frequent_topic_{topic}",
                frequency=count,
                confidence=min(count / len(recent), 1.0),
            )
            for topic, count in topics.items()
            if count >= MIN_REPETITIONS
        ]

    def _intent_patterns(self, history: list[Message]) -> list[Pattern]:
        intents = Counter(
            message.intent.name for message in history if message.intent is not None
        )
        return [
            Pattern(
                id=f"intent_{name}",
                type="intent",
                pattern=f"frequent_intent_{name}",
                frequency=count,
                confidence=count / len(history),
            )
            for name, count in intents.items()
            if count >= MIN_REPETITIONS
        ]

    # ==================================================================
    ## Preferences
    # ==================================================================

    def extract_preferences(self, message: Message) -> list[Preference]:
        content = message.content
        preferences: list[Preference] = []

        # Communication style
        formal = count_matches(content, FORMAL_WORDS)
        casual = count_matches(content, CASUAL_WORDS)
        if formal != casual:
            winner, count = ("formal", formal) if formal > casual else ("casual", casual)
            preferences.append(
                Preference(
                    category="communication_style",
                    value=winner,
                    confidence=count / (formal + casual),
                    source="message_analysis",
                )
            )

        # Format
        if LIST_MARKER_RE.search(content):
            preferences.append(
                Preference(
                    category="format_preference",
                    value="lists",
                    confidence=0.8,
                    source="format_analysis",
                )
            )
        if len(content) > DETAILED_LENGTH:
            preferences.append(
                Preference(
                    category="response_length",
                    value="detailed",
                    confidence=0.7,
                    source="length_analysis",
                )
            )
        elif len(content) < CONCISE_LENGTH:
            preferences.append(
                Preference(
                    category="response_length",
                    value="concise",
                    confidence=0.7,
                    source="length_analysis",
                )
            )

        # Interests
        for topic in extract_topics(content):
            preferences.append(
                Preference(
                    category="interests",
                    value=topic,
                    confidence=0.6,
                    source="topic_analysis",
                )
            )

        return preferences

    # ==================================================================
    ## Summary / Knowledge
    # ==================================================================

    def summarize(self, messages: list[Message]) -> ConversationSummary:
        joined = " ".join(message.content for message in messages)
        mean_length = sum(len(m.content) for m in messages) / len(messages)
        has_entities = any(message.entities for message in messages)

        importance = 0.5
        if mean_length > 100:
            importance += 0.2
        if has_entities:
            importance += 0.3

        return ConversationSummary(
            summary=(
                f"Resumen de conversación con {len(messages)} mensajes sobre: "
                f"{joined[:SUMMARY_PREVIEW_CHARS]}..."
            ),
            key_topics=tuple(extract_topics(joined)),
            sentiment=sentiment_score(joined),
            importance=min(importance, 1.0),
            message_count=len(messages),
        )

    def extract_knowledge(self, message: Message) -> Optional[Knowledge]:
        if len(message.content) <= KNOWLEDGE_MIN_LENGTH:
            return None
        topics = extract_topics(message.content)
        if not topics:
            return None
        return Knowledge(
            title=f"User query about {topics[0]}",
            content=message.content,
            source="conversation",
            tags=tuple(topics),
            confidence=0.7,
        )
