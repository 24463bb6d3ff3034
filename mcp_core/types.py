"""
Type definitions for the MCP core.

Includes:
- Session, Context and Memory (owned by the ContextManager)
- Message and its tagged metadata union
- Agent and its performance counters (owned by the AgentManager)
- ReasoningResult and its steps (produced by the ReasoningEngine)
"""

import secrets
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mcp_core.config import DEFAULT_MODEL


Confidence = Annotated[float, Field(ge=0.0, le=1.0)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Time-ordered id, e.g. msg_1718000000000_9f2c1a7b."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


# ============================================================================
# Enums
# ============================================================================


class SessionType(str, Enum):
    CHAT = "chat"
    TERMINAL = "terminal"
    API = "api"
    WORKFLOW = "workflow"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AgentRole(str, Enum):
    GENERAL_ASSISTANT = "general_assistant"
    CONTENT_CREATOR = "content_creator"
    DATA_ANALYST = "data_analyst"
    CUSTOMER_SUPPORT = "customer_support"
    WORKFLOW_MANAGER = "workflow_manager"
    TERMINAL_ASSISTANT = "terminal_assistant"


# ============================================================================
# Intent / Entity
# ============================================================================


class Intent(BaseModel):
    name: str
    confidence: Confidence = 1.0
    parameters: dict[str, Any] = Field(default_factory=dict)


class Entity(BaseModel):
    type: str  # email, url, number, date, time
    value: str
    confidence: Confidence = 0.9
    start: Optional[int] = None
    end: Optional[int] = None


# ============================================================================
# Message Metadata (tagged union on `kind`)
# ============================================================================


class SelectionMetadata(BaseModel):
    """Attached to inbound messages once analyzed and routed."""

    kind: Literal["selection"] = "selection"
    intent: Optional[Intent] = None
    entities: list[Entity] = Field(default_factory=list)
    confidence: Optional[Confidence] = None
    agent_id: Optional[str] = None
    agent_role: Optional[AgentRole] = None


class ResponseMetadata(BaseModel):
    """Attached to generated assistant messages."""

    kind: Literal["response"] = "response"
    model: str
    agent_id: str
    agent_name: str
    agent_role: Optional[AgentRole] = None  # None for multi-agent syntheses
    tokens: int = 0
    cost: float = 0.0
    processing_time: float = 0.0  # seconds
    confidence: Confidence = 0.9
    finish_reason: str = "stop"  # stop, length, cancelled, error


class ErrorMetadata(BaseModel):
    """Attached to degraded assistant messages."""

    kind: Literal["error"] = "error"
    agent_id: Optional[str] = None
    processing_time: float = 0.0
    error: str = ""
    confidence: Confidence = 0.0


MessageMetadata = Annotated[
    Union[SelectionMetadata, ResponseMetadata, ErrorMetadata],
    Field(discriminator="kind"),
]


class Message(BaseModel):
    id: str = Field(default_factory=lambda: new_id("msg"))
    session_id: str
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: Optional[MessageMetadata] = None

    @property
    def confidence(self) -> Optional[float]:
        if self.metadata is None:
            return None
        return self.metadata.confidence

    @property
    def entities(self) -> list[Entity]:
        if isinstance(self.metadata, SelectionMetadata):
            return self.metadata.entities
        return []

    @property
    def intent(self) -> Optional[Intent]:
        if isinstance(self.metadata, SelectionMetadata):
            return self.metadata.intent
        return None

    @property
    def is_degraded(self) -> bool:
        return isinstance(self.metadata, ErrorMetadata)


# ============================================================================
# Preferences
# ============================================================================


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True
    sms: bool = False
    frequency: str = "immediate"


class AIPreferences(BaseModel):
    preferred_model: str = DEFAULT_MODEL
    response_style: str = "balanced"  # concise, balanced, detailed
    creativity: Confidence = 0.7
    formality: Confidence = 0.5


class UserPreferences(BaseModel):
    language: str = "es"
    timezone: str = "UTC"
    theme: str = "auto"
    notifications: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    ai: AIPreferences = Field(default_factory=AIPreferences)

    @classmethod
    def merged(cls, stored: Optional[dict[str, Any]]) -> "UserPreferences":
        """Stored values layered over the defaults, one level deep for nested groups."""
        data = cls().model_dump()
        for key, value in (stored or {}).items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return cls.model_validate(data)


# ============================================================================
# Context / Memory
# ============================================================================


class Context(BaseModel):
    conversation_history: list[Message] = Field(default_factory=list)
    current_intent: Intent = Field(default_factory=lambda: Intent(name="general"))
    entities: list[Entity] = Field(default_factory=list)
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)
    metadata: dict[str, Any] = Field(default_factory=dict)


class Pattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["temporal", "content", "intent"]
    pattern: str
    frequency: int
    confidence: Confidence
    last_seen: datetime = Field(default_factory=utc_now)


class Preference(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("pref"))
    category: str  # communication_style, format_preference, response_length, interests
    value: str
    confidence: Confidence
    source: str = "extracted"
    learned_at: datetime = Field(default_factory=utc_now)


class Knowledge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("knowledge"))
    title: str
    content: str
    source: str = "conversation"
    tags: tuple[str, ...] = ()
    confidence: Confidence = 0.7
    created_at: datetime = Field(default_factory=utc_now)


class ConversationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("summary"))
    summary: str
    key_topics: tuple[str, ...] = ()
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    importance: Confidence = 0.5
    message_count: int = 0
    created_at: datetime = Field(default_factory=utc_now)


class LongTermMemory(BaseModel):
    user_patterns: list[Pattern] = Field(default_factory=list)
    learned_preferences: list[Preference] = Field(default_factory=list)
    conversation_summaries: list[ConversationSummary] = Field(default_factory=list)
    knowledge_base: list[Knowledge] = Field(default_factory=list)


class Memory(BaseModel):
    short_term: dict[str, Any] = Field(default_factory=dict)
    long_term: LongTermMemory = Field(default_factory=LongTermMemory)


class Session(BaseModel):
    id: str = Field(default_factory=lambda: new_id("session"))
    user_id: str
    type: SessionType = SessionType.CHAT
    context: Context = Field(default_factory=Context)
    memory: Memory = Field(default_factory=Memory)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# ============================================================================
# Agents
# ============================================================================


class Personality(BaseModel):
    tone: str
    style: str
    expertise: list[str] = Field(default_factory=list)
    traits: list[str] = Field(default_factory=list)


class AgentPerformance(BaseModel):
    total_interactions: int = Field(default=0, ge=0)
    success_rate: Confidence = 1.0
    average_response_time: float = 0.0  # seconds
    last_updated: datetime = Field(default_factory=utc_now)


class Agent(BaseModel):
    id: str
    role: AgentRole
    name: str
    description: str
    capabilities: list[str] = Field(default_factory=list)
    model: str = DEFAULT_MODEL
    personality: Personality
    performance: AgentPerformance = Field(default_factory=AgentPerformance)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


# ============================================================================
# Reasoning
# ============================================================================


class ReasoningStep(BaseModel):
    id: str = Field(default_factory=lambda: new_id("step"))
    type: str  # analysis, agent_selection, decomposition, dependency_analysis, ...
    description: str
    input: dict[str, Any] = Field(default_factory=dict)
    output: dict[str, Any] = Field(default_factory=dict)
    confidence: Confidence
    timestamp: datetime = Field(default_factory=utc_now)
    duration: float = 0.0  # seconds


class Recommendation(BaseModel):
    type: str  # optimization, workflow, agent_suggestion
    title: str
    description: str
    priority: Literal["low", "medium", "high"] = "low"
    confidence: Confidence = 0.7


class ReasoningMetadata(BaseModel):
    path: Literal["simple", "complex"]
    complexity: Confidence
    domain: str
    intents: list[str] = Field(default_factory=list)
    agent_id: Optional[str] = None
    subtask_count: int = 0
    cached: bool = False


class ReasoningResult(BaseModel):
    success: bool
    confidence: Confidence
    reasoning: str = ""
    steps: list[ReasoningStep] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    processing_time: float = 0.0  # seconds
    error: Optional[str] = None
    metadata: Optional[ReasoningMetadata] = None
    response: Optional[Message] = None
