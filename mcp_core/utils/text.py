"""
Lightweight text heuristics shared by memory processing and request analysis.

Word lists are Spanish, matching the conversations this core was built for.
"""

import re
import string

STOP_WORDS = frozenset(
    {
        "el", "la", "de", "que", "y", "a", "en", "un", "es", "se", "no", "te",
        "lo", "le", "da", "su", "por", "son", "con", "para", "al", "del", "los",
        "las", "una", "como", "pero", "sus", "este", "esta", "estos", "sobre",
        "entre", "cuando", "muy", "sin", "también", "hasta", "donde", "quiero",
    }
)  # fmt: skip

FORMAL_WORDS = ("por favor", "gracias", "disculpe", "cordialmente")
CASUAL_WORDS = ("hola", "hey", "genial", "perfecto")

POSITIVE_WORDS = ("bueno", "excelente", "perfecto", "genial", "gracias")
NEGATIVE_WORDS = ("malo", "error", "problema", "difícil", "no funciona")

URGENCY_RE = re.compile(r"importante|urgente|problema|error|ayuda", re.IGNORECASE)

MIN_TOPIC_LENGTH = 4
MAX_TOPICS = 5

_PUNCTUATION = string.punctuation + "¿¡«»“”‘’…"


def tokenize(content: str) -> list[str]:
    """Lowercase, split on whitespace and strip surrounding punctuation."""
    tokens = (word.strip(_PUNCTUATION) for word in content.lower().split())
    return [token for token in tokens if token]


def extract_topics(content: str, limit: int = MAX_TOPICS) -> list[str]:
    """
    Pick candidate topic words from a message.

    Tokens shorter than four characters and stop words are dropped; the first
    `limit` survivors are returned in order of appearance.
    """
    topics = [
        token
        for token in tokenize(content)
        if len(token) >= MIN_TOPIC_LENGTH and token not in STOP_WORDS
    ]
    return topics[:limit]


def count_matches(content: str, words) -> int:
    """Number of entries of `words` that occur in content (case-insensitive)."""
    lowered = content.lower()
    return sum(1 for word in words if word in lowered)


def sentiment_score(content: str) -> float:
    """Word-list sentiment in [-1, 1]; each matched word moves the score by 0.1."""
    score = 0.1 * count_matches(content, POSITIVE_WORDS)
    score -= 0.1 * count_matches(content, NEGATIVE_WORDS)
    return max(-1.0, min(1.0, score))


def has_urgency(content: str) -> bool:
    return bool(URGENCY_RE.search(content))
