from .main_agent import AgentOrchestrator, WorkflowState

__all__ = ["AgentOrchestrator", "WorkflowState"]
