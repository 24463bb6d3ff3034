import asyncio
from typing import Optional

import pytest
import pytest_asyncio

from mcp_core.agent.manager import AgentManager
from mcp_core.config import Settings
from mcp_core.context.manager import ContextManager
from mcp_core.errors import ExternalServiceError
from mcp_core.model.llm import GenerationOptions, GenerationResult, StreamChunk, TokenUsage
from mcp_core.reasoning.engine import ReasoningEngine
from mcp_core.service import MCPService
from mcp_core.storage.memory_store import (
    InMemoryKnowledgeIndex,
    InMemoryRelationalStore,
    InMemorySessionStore,
)
from mcp_core.types import Message, MessageRole


class FakeLLMClient:
    """Scripted LLMClient for tests; records every call."""

    def __init__(
        self,
        responses: Optional[list[str]] = None,
        default_response: str = "Respuesta de prueba",
        chunks: Optional[list[str]] = None,
        error: Optional[Exception] = None,
        fail_after: Optional[int] = None,
    ):
        self.responses = list(responses or [])
        self.default_response = default_response
        self.chunks = list(chunks if chunks is not None else ["Hola", ", ", "mundo"])
        self.error = error
        self.fail_after = fail_after
        self.calls: list[tuple[str, GenerationOptions]] = []
        self.stream_closed = False

    async def generate(self, prompt: str, options: GenerationOptions) -> GenerationResult:
        self.calls.append((prompt, options))
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if self.responses else self.default_response
        return GenerationResult(
            content=content,
            model=options.model,
            token_usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
            cost=0.001,
        )

    async def stream(self, prompt: str, options: GenerationOptions):
        self.calls.append((prompt, options))
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index == self.fail_after:
                    raise self.error or ExternalServiceError("stream broke", service="llm")
                await asyncio.sleep(0)
                yield StreamChunk(content=chunk)
            yield StreamChunk(content="", finished=True, cost=0.002)
        finally:
            self.stream_closed = True


class ChunkIterator:
    """Async iterator without aclose(), as some SDK stream wrappers are."""

    def __init__(self, chunks: list[StreamChunk]):
        self._chunks = iter(chunks)

    def __aiter__(self):
        return self

    async def __anext__(self) -> StreamChunk:
        try:
            return next(self._chunks)
        except StopIteration:
            raise StopAsyncIteration


class IteratorLLMClient(FakeLLMClient):
    """FakeLLMClient whose stream() returns a plain async iterator."""

    def stream(self, prompt: str, options: GenerationOptions) -> ChunkIterator:
        self.calls.append((prompt, options))
        chunks = [StreamChunk(content=chunk) for chunk in self.chunks]
        chunks.append(StreamChunk(content="", finished=True, cost=0.002))
        return ChunkIterator(chunks)


def user_message(session_id: str, content: str, **kwargs) -> Message:
    return Message(session_id=session_id, role=MessageRole.USER, content=content, **kwargs)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key")


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def relational_store() -> InMemoryRelationalStore:
    return InMemoryRelationalStore()


@pytest.fixture
def knowledge_index() -> InMemoryKnowledgeIndex:
    return InMemoryKnowledgeIndex()


@pytest.fixture
def context_manager(settings, session_store, relational_store) -> ContextManager:
    return ContextManager(
        session_store=session_store,
        relational_store=relational_store,
        settings=settings,
    )


@pytest.fixture
def agent_manager(fake_llm, context_manager, settings, relational_store) -> AgentManager:
    return AgentManager(
        llm=fake_llm,
        context_manager=context_manager,
        settings=settings,
        relational_store=relational_store,
    )


@pytest.fixture
def engine(context_manager, agent_manager, settings) -> ReasoningEngine:
    return ReasoningEngine(
        context_manager=context_manager,
        agent_manager=agent_manager,
        settings=settings,
    )


@pytest.fixture
def service(settings, fake_llm) -> MCPService:
    return MCPService.create(settings=settings, llm=fake_llm, observers=[])


@pytest_asyncio.fixture
async def session(context_manager):
    return await context_manager.create_session("user123")
