from typing import Optional

import structlog

from aide.domain.errors import ExecutionFailure
from aide.domain.models.agent_state import AgentRequest, AgentResponse, AgentType
from aide.domain.tool.tool_executor import ExecutionBackend, SimulatedExecutionBackend
from .base_subagent import BaseSubAgent

logger = structlog.get_logger(__name__)


class ExecutorAgent(BaseSubAgent):
    """Runs the final build/deploy step; terminal stage of the pipeline"""

    agent_type = AgentType.EXECUTOR

    def __init__(self, backend: Optional[ExecutionBackend] = None):
        super().__init__("Executor", "Executes tasks and manages deployment")
        self.backend = backend if backend is not None else SimulatedExecutionBackend()

    def validate_input(self, request: AgentRequest) -> bool:
        return bool(request.code)

    async def process(self, request: AgentRequest) -> AgentResponse:
        return await self.execute(request.code, request.project_id)

    async def execute(self, code: str, project_id: int) -> AgentResponse:
        """Execute code for a project and summarize the outcome"""

        try:
            summary = await self.backend.run(code, project_id)
            if not summary.summary_text:
                raise ExecutionFailure("Execution backend returned an empty summary")
        except Exception as e:
            logger.warning("Execution failed", project_id=project_id, error=str(e))
            return AgentResponse(success=False, error=f"Executor error: {e}")

        return AgentResponse(success=True, result=summary.summary_text)
