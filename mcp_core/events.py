"""
Stream events yielded by MCPService.stream_message.

Consumers receive a StreamStartEvent, any number of StreamChunkEvents, then
exactly one StreamDoneEvent or StreamErrorEvent.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

from mcp_core.types import Message


@dataclass
class StreamStartEvent:
    """Emitted once the agent has been selected."""

    type: Literal["stream_start"] = "stream_start"
    session_id: str = ""
    agent_id: str = ""
    agent_name: str = ""


@dataclass
class StreamChunkEvent:
    """A piece of generated text delivered to the caller."""

    type: Literal["chunk"] = "chunk"
    content: str = ""


@dataclass
class StreamDoneEvent:
    """Emitted after the delivered text has been committed to the session."""

    type: Literal["done"] = "done"
    finish_reason: str = "stop"  # stop, cancelled
    message: Optional[Message] = None
    cost: float = 0.0


@dataclass
class StreamErrorEvent:
    """Emitted when generation fails; `message` holds any committed partial text."""

    type: Literal["error"] = "error"
    error: str = ""
    message: Optional[Message] = None
    details: dict = field(default_factory=dict)


# Union type for all stream events
StreamEvent = StreamStartEvent | StreamChunkEvent | StreamDoneEvent | StreamErrorEvent
