from typing import Dict, Optional

from aide.domain.llm.generator import TextGenerator
from aide.domain.models.agent_state import AgentType
from aide.domain.tool.tool_executor import ExecutionBackend
from .base_subagent import BaseSubAgent
from .planner import PlannerAgent
from .coder import CoderAgent
from .verifier import QualityRules, VerifierAgent
from .executor import ExecutorAgent


def default_agents(
    generator: Optional[TextGenerator] = None,
    backend: Optional[ExecutionBackend] = None,
    rules: Optional[QualityRules] = None
) -> Dict[AgentType, BaseSubAgent]:
    """One agent per pipeline stage"""
    return {
        AgentType.PLANNER: PlannerAgent(generator),
        AgentType.CODER: CoderAgent(generator),
        AgentType.VERIFIER: VerifierAgent(rules),
        AgentType.EXECUTOR: ExecutorAgent(backend),
    }


__all__ = [
    "BaseSubAgent", "PlannerAgent", "CoderAgent", "VerifierAgent",
    "ExecutorAgent", "QualityRules", "default_agents",
]
