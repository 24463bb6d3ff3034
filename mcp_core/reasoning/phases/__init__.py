from mcp_core.reasoning.phases.base import Phase
from mcp_core.reasoning.phases.analyze import AnalyzePhase
from mcp_core.reasoning.phases.decompose import DecomposePhase
from mcp_core.reasoning.phases.plan import DependencyPhase, PlanPhase
from mcp_core.reasoning.phases.execute import ExecuteCallbacks, ExecutePhase
from mcp_core.reasoning.phases.synthesize import SynthesizePhase
from mcp_core.reasoning.phases.recommend import RecommendPhase

__all__ = [
    "Phase",
    "AnalyzePhase",
    "DecomposePhase",
    "DependencyPhase",
    "PlanPhase",
    "ExecuteCallbacks",
    "ExecutePhase",
    "SynthesizePhase",
    "RecommendPhase",
]
