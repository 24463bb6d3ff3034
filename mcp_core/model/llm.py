"""
LLM client capability.

The core only depends on the LLMClient protocol. ChatLLMClient is the
provided implementation, backed by LangChain's ChatOpenAI pointed at any
OpenAI-compatible endpoint (SiliconFlow by default).
"""

import math
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from mcp_core.config import DEFAULT_MODEL, Settings
from mcp_core.errors import ConfigurationError, ExternalServiceError
from mcp_core.utils.logger import get_logger

logger = get_logger(__name__)


# USD per million tokens
MODEL_COSTS: dict[str, float] = {
    "doubao-1.5-pro-32k": 0.11,
    "doubao-1.5-pro-256k": 0.18,
}

WORDS_PER_TOKEN = 0.75


# ======================================================================
## Request / Response Types
# ======================================================================


class GenerationOptions(BaseModel):
    model: str = DEFAULT_MODEL
    system_prompt: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = 2000
    stream: bool = False


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class GenerationResult(BaseModel):
    content: str
    model: str
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    finish_reason: str = "stop"


class StreamChunk(BaseModel):
    content: str = ""
    finished: bool = False
    cost: float = 0.0


@runtime_checkable
class LLMClient(Protocol):
    """Text generation capability consumed by the agent registry."""

    async def generate(
        self, prompt: str, options: GenerationOptions
    ) -> GenerationResult: ...

    def stream(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]: ...


# ======================================================================
## Helpers
# ======================================================================


def estimate_tokens(text: str) -> int:
    """Rough token count for providers that do not report usage."""
    words = len(text.split())
    return math.ceil(words / WORDS_PER_TOKEN)


def calculate_text_cost(model: str, tokens: int) -> float:
    """Cost in USD; unknown models are billed at the default model's rate."""
    rate = MODEL_COSTS.get(model, MODEL_COSTS[DEFAULT_MODEL])
    return tokens * rate / 1_000_000


def build_messages(prompt: str, system_prompt: Optional[str] = None) -> list[BaseMessage]:
    messages: list[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))
    messages.append(HumanMessage(content=prompt))
    return messages


def _text(content) -> str:
    """Flatten LangChain message content (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


# ======================================================================
## ChatOpenAI-backed client
# ======================================================================


class ChatLLMClient:
    """LLMClient backed by langchain_openai.ChatOpenAI."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _get_chat_llm(self, options: GenerationOptions) -> ChatOpenAI:
        """初始化并配置 LangChain ChatOpenAI 实例"""
        if not self.settings.api_key:
            raise ConfigurationError("OPENAI_API_KEY environment variable is not set.")

        return ChatOpenAI(
            model=options.model,
            api_key=self.settings.api_key,
            base_url=self.settings.base_url,
            timeout=self.settings.request_timeout,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
        )

    async def generate(
        self, prompt: str, options: GenerationOptions
    ) -> GenerationResult:
        """
        Single-shot completion.

        Args:
            prompt: User prompt
            options: Model, system prompt, temperature and token limit

        Returns:
            GenerationResult with content, token usage, cost and finish reason

        Raises:
            ConfigurationError: API key missing
            ExternalServiceError: Provider call failed
        """
        llm = self._get_chat_llm(options)
        messages = build_messages(prompt, options.system_prompt)

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"LLM call failed for model {options.model}: {e}")
            raise ExternalServiceError(
                f"LLM generation failed: {e}", service="llm", details={"model": options.model}
            ) from e

        content = _text(response.content)
        usage_metadata = getattr(response, "usage_metadata", None) or {}
        prompt_tokens = usage_metadata.get("input_tokens", 0)
        completion_tokens = usage_metadata.get("output_tokens", 0)
        total_tokens = usage_metadata.get("total_tokens") or estimate_tokens(
            f"{options.system_prompt or ''} {prompt} {content}"
        )
        finish_reason = (response.response_metadata or {}).get("finish_reason") or "stop"

        logger.debug(
            f"LLM call done: model={options.model}, tokens={total_tokens}, "
            f"finish_reason={finish_reason}"
        )

        return GenerationResult(
            content=content,
            model=options.model,
            token_usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total_tokens,
            ),
            cost=calculate_text_cost(options.model, total_tokens),
            finish_reason=finish_reason,
        )

    async def stream(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[StreamChunk]:
        """
        Streaming completion.

        Yields one chunk per non-empty delta, then a final chunk with
        finished=True carrying the estimated cost of the whole response.
        """
        llm = self._get_chat_llm(options)
        messages = build_messages(prompt, options.system_prompt)
        received: list[str] = []

        try:
            async for chunk in llm.astream(messages):
                text = _text(chunk.content)
                # Skip empty chunks (metadata only)
                if not text:
                    continue
                received.append(text)
                yield StreamChunk(content=text)
        except Exception as e:
            logger.error(f"LLM stream failed for model {options.model}: {e}")
            raise ExternalServiceError(
                f"LLM streaming failed: {e}", service="llm", details={"model": options.model}
            ) from e

        tokens = estimate_tokens(f"{prompt} {''.join(received)}")
        yield StreamChunk(
            content="", finished=True, cost=calculate_text_cost(options.model, tokens)
        )
