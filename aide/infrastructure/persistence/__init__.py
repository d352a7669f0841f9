from .repository import InMemoryRepository, Repository
from .task_log import AgentTaskLog

__all__ = ["InMemoryRepository", "Repository", "AgentTaskLog"]
