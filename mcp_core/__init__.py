"""
MCP core: conversational orchestration for multi-agent chat.

Components:
- ContextManager: sessions, history optimization and long-term memory
- AgentManager: role-specialized personas, routing and performance counters
- ReasoningEngine: simple vs. multi-step processing with a result cache
- MCPService: facade wiring the three together

Usage:
    from mcp_core import MCPService

    service = MCPService.create()
    session = await service.create_session("user123")
    result = await service.handle_message(session.id, "Necesito analizar los datos de ventas")
"""

from mcp_core.agent import AgentManager
from mcp_core.config import Settings, load_settings
from mcp_core.context import ContextManager
from mcp_core.errors import (
    ConfigurationError,
    ExternalServiceError,
    MCPError,
    NotFoundError,
    ValidationError,
)
from mcp_core.reasoning import ReasoningEngine
from mcp_core.service import MCPService
from mcp_core.types import (
    Agent,
    AgentRole,
    Context,
    Message,
    MessageRole,
    ReasoningResult,
    Session,
    SessionType,
)

__version__ = "0.1.0"

__all__ = [
    "MCPService",
    "ContextManager",
    "AgentManager",
    "ReasoningEngine",
    "Settings",
    "load_settings",
    "MCPError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "ConfigurationError",
    "Agent",
    "AgentRole",
    "Context",
    "Message",
    "MessageRole",
    "ReasoningResult",
    "Session",
    "SessionType",
]
