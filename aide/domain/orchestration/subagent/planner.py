from typing import Optional, Sequence

import structlog

from aide.domain.context.context_manager import MemoryContext
from aide.domain.llm.generator import PLANNER_ROLE, TemplateGenerator, TextGenerator
from aide.domain.models.agent_state import AgentRequest, AgentResponse, AgentType
from aide.domain.models.memory_entry import MemoryEntry
from .base_subagent import BaseSubAgent

logger = structlog.get_logger(__name__)


class PlannerAgent(BaseSubAgent):
    """Analyzes requirements and creates a development plan"""

    agent_type = AgentType.PLANNER

    def __init__(self, generator: Optional[TextGenerator] = None):
        super().__init__("Planner", "Analyzes requirements and creates a development plan")
        self.generator = generator if generator is not None else TemplateGenerator()

    def validate_input(self, request: AgentRequest) -> bool:
        return bool(request.prompt and request.prompt.strip())

    async def process(self, request: AgentRequest) -> AgentResponse:
        return await self.analyze(request.prompt, request.memories)

    async def analyze(self, prompt: str, memories: Optional[Sequence[MemoryEntry]] = None) -> AgentResponse:
        """Produce a development plan for the prompt"""

        user_prompt = prompt
        if memories:
            user_prompt += "\n\nRelevant past experience:\n" + MemoryContext.format_for_prompt(memories)

        try:
            plan = await self.generator.generate(PLANNER_ROLE, user_prompt)
        except Exception as e:
            logger.warning("Planner generation failed", error=str(e))
            return AgentResponse(success=False, error=f"Planner error: {e}")

        return AgentResponse(success=True, result=plan, next_agent=AgentType.CODER)
