"""
Multi-step reasoning: request analysis, decomposition, sequential execution
through the agent registry, and synthesis.
"""

from mcp_core.reasoning.engine import ReasoningEngine
from mcp_core.reasoning.state import ReasoningStage, RequestAnalysis

__all__ = ["ReasoningEngine", "ReasoningStage", "RequestAnalysis"]
