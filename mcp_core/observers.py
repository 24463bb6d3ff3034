"""
Observer interfaces for progress and telemetry.

Observers are notified after state has been committed. Nothing in the core
depends on what an observer does: a failing observer is logged and skipped.
"""

from typing import Any, Iterable, Protocol

from mcp_core.types import Agent, Message, ReasoningResult, ReasoningStep, Session
from mcp_core.utils.logger import get_logger

logger = get_logger(__name__)


# ======================================================================
## Observer Protocols
# ======================================================================


class ContextObserver(Protocol):
    """Callbacks for session lifecycle events."""

    def on_session_created(self, session: Session) -> None:
        """Called once a new session has been persisted."""
        ...

    def on_context_updated(self, session: Session, message: Message) -> None:
        """Called after a message has been committed to a session."""
        ...


class AgentObserver(Protocol):
    """Callbacks for agent registry events."""

    def on_agent_selected(self, agent: Agent, session_id: str) -> None:
        ...

    def on_agent_error(self, agent: Agent, session_id: str, error: str) -> None:
        ...


class ReasoningObserver(Protocol):
    """Callbacks for reasoning progress."""

    def on_step_completed(self, session_id: str, step: ReasoningStep) -> None:
        ...

    def on_reasoning_completed(self, session_id: str, result: ReasoningResult) -> None:
        ...


def notify(observers: Iterable[Any], event: str, *args: Any) -> None:
    """
    Call `event` on every observer that implements it.

    Args:
        observers: Registered observers
        event: Callback name, e.g. "on_session_created"
        *args: Callback arguments
    """
    for observer in observers:
        callback = getattr(observer, event, None)
        if callback is None:
            continue
        try:
            callback(*args)
        except Exception as e:
            logger.warning(
                f"Observer {type(observer).__name__}.{event} failed: {e}"
            )


# ======================================================================
## Default Observer
# ======================================================================


class LoggingObserver:
    """Writes every event to the log at DEBUG/INFO level."""

    def on_session_created(self, session: Session) -> None:
        logger.info(
            f"Session created: {session.id} (user={session.user_id}, type={session.type.value})"
        )

    def on_context_updated(self, session: Session, message: Message) -> None:
        logger.debug(
            f"Context updated: {session.id} <- {message.role.value} "
            f"({len(session.context.conversation_history)} messages)"
        )

    def on_agent_selected(self, agent: Agent, session_id: str) -> None:
        logger.info(f"Agent selected for {session_id}: {agent.name} ({agent.role.value})")

    def on_agent_error(self, agent: Agent, session_id: str, error: str) -> None:
        logger.warning(f"Agent {agent.name} failed for {session_id}: {error}")

    def on_step_completed(self, session_id: str, step: ReasoningStep) -> None:
        logger.debug(
            f"Reasoning step {step.type} for {session_id}: confidence={step.confidence:.2f}"
        )

    def on_reasoning_completed(self, session_id: str, result: ReasoningResult) -> None:
        logger.info(
            f"Reasoning completed for {session_id}: success={result.success}, "
            f"confidence={result.confidence:.2f}, steps={len(result.steps)}"
        )
