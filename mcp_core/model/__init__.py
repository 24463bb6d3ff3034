from mcp_core.model.llm import (
    LLMClient,
    ChatLLMClient,
    GenerationOptions,
    GenerationResult,
    StreamChunk,
    TokenUsage,
    MODEL_COSTS,
    calculate_text_cost,
    estimate_tokens,
)

__all__ = [
    "LLMClient",
    "ChatLLMClient",
    "GenerationOptions",
    "GenerationResult",
    "StreamChunk",
    "TokenUsage",
    "MODEL_COSTS",
    "calculate_text_cost",
    "estimate_tokens",
]
