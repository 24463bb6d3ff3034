from mcp_core.reasoning.patterns import (
    COMPLEX_KEYWORDS,
    DEFAULT_DOMAIN,
    DEFAULT_INTENT,
    DEFAULT_INTENT_CONFIDENCE,
    DOMAIN_KEYWORDS,
    ENTITY_CONFIDENCE,
    ENTITY_PATTERNS,
    EXTERNAL_DATA_KEYWORDS,
    INTENT_CONFIDENCE,
    INTENT_PATTERNS,
    USER_INPUT_KEYWORDS,
)
from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.state import AnalyzeInput, ContextualFactor, RequestAnalysis
from mcp_core.types import Entity, Intent, Session
from mcp_core.utils.logger import get_logger
from mcp_core.utils.text import count_matches

logger = get_logger(__name__)


def extract_intents(content: str) -> list[Intent]:
    """All matching intents in table order, or a single low-confidence "general"."""
    intents = [
        Intent(name=name, confidence=INTENT_CONFIDENCE)
        for name, pattern in INTENT_PATTERNS.items()
        if pattern.search(content)
    ]
    return intents or [Intent(name=DEFAULT_INTENT, confidence=DEFAULT_INTENT_CONFIDENCE)]


def extract_entities(content: str) -> list[Entity]:
    entities = []
    for entity_type, pattern in ENTITY_PATTERNS.items():
        for match in pattern.finditer(content):
            entities.append(
                Entity(
                    type=entity_type,
                    value=match.group(0),
                    confidence=ENTITY_CONFIDENCE,
                    start=match.start(),
                    end=match.end(),
                )
            )
    return entities


def score_complexity(content: str, intents: list[Intent], entities: list[Entity]) -> float:
    """
    Additive complexity score in [0, 1]:

        min(len/1000, 0.3) + min(#intents*0.2, 0.4)
        + min(#entities*0.1, 0.3) + min(#complex_keywords*0.15, 0.3)
    """
    complexity = min(len(content) / 1000, 0.3)
    complexity += min(len(intents) * 0.2, 0.4)
    complexity += min(len(entities) * 0.1, 0.3)
    complexity += min(count_matches(content, COMPLEX_KEYWORDS) * 0.15, 0.3)
    return min(complexity, 1.0)


def determine_domain(content: str) -> str:
    """Domain with the most keyword hits; ties go to the earlier domain."""
    best_score = 0
    domain = DEFAULT_DOMAIN
    for name, keywords in DOMAIN_KEYWORDS.items():
        score = count_matches(content, keywords)
        if score > best_score:
            best_score = score
            domain = name
    return domain


def contextual_factors(session: Session) -> list[ContextualFactor]:
    factors = []

    history_length = len(session.context.conversation_history)
    if history_length > 0:
        factors.append(
            ContextualFactor(
                factor="conversation_history",
                value=history_length,
                impact=min(history_length / 20, 1.0),
            )
        )

    factors.append(
        ContextualFactor(
            factor="user_preferences",
            value=session.context.user_preferences.ai.response_style,
            impact=0.5,
        )
    )

    patterns = session.memory.long_term.user_patterns
    if patterns:
        factors.append(
            ContextualFactor(
                factor="learned_patterns",
                value=len(patterns),
                impact=min(len(patterns) / 10, 0.8),
            )
        )

    return factors


class AnalyzePhase(Phase):
    """Classifies a request: intents, entities, complexity and domain."""

    async def run(self, input: AnalyzeInput) -> RequestAnalysis:
        content = input.content
        intents = extract_intents(content)
        entities = extract_entities(content)

        analysis = RequestAnalysis(
            intents=intents,
            entities=entities,
            complexity=score_complexity(content, intents, entities),
            domain=determine_domain(content),
            requires_external_data=count_matches(content, EXTERNAL_DATA_KEYWORDS) > 0,
            requires_user_input=count_matches(content, USER_INPUT_KEYWORDS) > 0,
            contextual_factors=contextual_factors(input.session),
        )

        logger.debug(
            f"Analyze phase: intents={analysis.intent_names}, "
            f"complexity={analysis.complexity:.2f}, domain={analysis.domain}"
        )
        return analysis
