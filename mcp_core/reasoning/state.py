from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from mcp_core.types import Entity, Intent, Message, ReasoningStep, Session

# ======================================================================
## Stage Types
# ======================================================================


class ReasoningStage(Enum):
    ANALYZE = "analyze"
    # simple path
    SELECT_AGENT = "select_agent"
    GENERATE = "generate"
    # complex path
    DECOMPOSE = "decompose"
    DEPENDENCY_ANALYSIS = "dependency_analysis"
    PLAN = "plan"
    EXECUTE = "execute"
    SYNTHESIZE = "synthesize"
    RECOMMEND = "recommend"
    RETURN = "return"


SIMPLE_PATH = (
    ReasoningStage.ANALYZE,
    ReasoningStage.SELECT_AGENT,
    ReasoningStage.GENERATE,
    ReasoningStage.RETURN,
)
COMPLEX_PATH = (
    ReasoningStage.ANALYZE,
    ReasoningStage.DECOMPOSE,
    ReasoningStage.DEPENDENCY_ANALYSIS,
    ReasoningStage.PLAN,
    ReasoningStage.EXECUTE,
    ReasoningStage.SYNTHESIZE,
    ReasoningStage.RECOMMEND,
    ReasoningStage.RETURN,
)


class SubTaskStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# ======================================================================
## Analyze Phase Types
# ======================================================================


@dataclass
class AnalyzeInput:
    content: str
    session: Session


@dataclass
class ContextualFactor:
    factor: str
    value: Any
    impact: float


@dataclass
class RequestAnalysis:
    intents: list[Intent]
    entities: list[Entity]
    complexity: float
    domain: str
    requires_external_data: bool = False
    requires_user_input: bool = False
    contextual_factors: list[ContextualFactor] = field(default_factory=list)

    @property
    def primary_intent(self) -> Intent:
        return self.intents[0]

    @property
    def intent_names(self) -> list[str]:
        return [intent.name for intent in self.intents]


# ======================================================================
## Decompose / Plan Phase Types
# ======================================================================


@dataclass
class SubTask:
    id: str
    description: str
    intent: str
    order: int
    depends_on: list[str] = field(default_factory=list)
    status: SubTaskStatus = SubTaskStatus.PENDING


@dataclass
class Decomposition:
    subtasks: list[SubTask]
    confidence: float
    reasoning: str


@dataclass
class ExecutionStep:
    id: str
    subtask: SubTask
    order: int
    depends_on: Optional[str] = None


@dataclass
class ExecutionPlan:
    steps: list[ExecutionStep]
    confidence: float
    description: str


# ======================================================================
## Execute Phase Types
# ======================================================================


@dataclass
class ExecuteInput:
    session_id: str
    request: Message
    plan: ExecutionPlan
    cancellation_token: Optional[asyncio.Event] = None


@dataclass
class SubTaskResult:
    step_id: str
    success: bool
    output: str
    confidence: float
    agent_id: Optional[str] = None
    tokens: int = 0
    cost: float = 0.0
    error: Optional[str] = None


@dataclass
class ExecutionOutcome:
    results: list[SubTaskResult]
    overall_confidence: float
    steps: list[ReasoningStep] = field(default_factory=list)


# ======================================================================
## Synthesize / Recommend Phase Types
# ======================================================================


@dataclass
class Synthesis:
    summary: str
    confidence: float
    successful: int
    total: int


@dataclass
class RecommendInput:
    analysis: RequestAnalysis
    complex_path: bool
    agent_role: Optional[str] = None
    agent_name: Optional[str] = None
