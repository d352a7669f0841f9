from typing import List, Optional
import structlog

from aide.domain.models.agent_state import AgentTaskRecord, TaskStatus
from .repository import InMemoryRepository, Repository

logger = structlog.get_logger(__name__)


class AgentTaskLog:
    """Durable log of finished agent task records, grouped by project"""

    def __init__(self, repository: Optional[Repository[AgentTaskRecord]] = None):
        self.repository = repository if repository is not None else InMemoryRepository()

    async def record(self, task: AgentTaskRecord) -> None:
        """Insert or replace a task record"""

        await self.repository.insert(task.project_id, task.id, task)
        logger.debug("Task recorded", task_id=task.id, project_id=task.project_id,
                     status=task.status.value)

    async def list_tasks(self, project_id: int, status: Optional[TaskStatus] = None) -> List[AgentTaskRecord]:
        """Tasks of a project in the order they were recorded"""

        tasks = await self.repository.select(project_id)
        if status is not None:
            tasks = [task for task in tasks if task.status == status]
        return tasks

    async def get_task(self, project_id: int, task_id: str) -> Optional[AgentTaskRecord]:
        """Get a single task of a project"""

        return await self.repository.get(project_id, task_id)
