"""
Agent registry: personas, routing and performance tracking.

Usage:
    from mcp_core.agent import AgentManager

    manager = AgentManager(llm=client, context_manager=contexts)
    agent = await manager.select_best_agent(session_id, message)
    reply = await manager.process_with_agent(agent, session_id, message)
"""

from mcp_core.agent.manager import AgentManager, GenerationRequest
from mcp_core.agent.catalog import (
    INTENT_ROLE_MAP,
    ROUTING_RULES,
    TEMPERATURE_BY_ROLE,
    agent_id_for,
    default_agents,
)

__all__ = [
    "AgentManager",
    "GenerationRequest",
    "INTENT_ROLE_MAP",
    "ROUTING_RULES",
    "TEMPERATURE_BY_ROLE",
    "agent_id_for",
    "default_agents",
]
