from typing import Optional

import structlog

from aide.domain.llm.generator import CODER_ROLE, TemplateGenerator, TextGenerator
from aide.domain.models.agent_state import AgentRequest, AgentResponse, AgentType
from .base_subagent import BaseSubAgent

logger = structlog.get_logger(__name__)


class CoderAgent(BaseSubAgent):
    """Generates an implementation from the prompt and plan"""

    agent_type = AgentType.CODER

    def __init__(self, generator: Optional[TextGenerator] = None):
        super().__init__("Coder", "Generates and implements code")
        self.generator = generator if generator is not None else TemplateGenerator()

    def validate_input(self, request: AgentRequest) -> bool:
        return bool(request.prompt and request.prompt.strip())

    async def process(self, request: AgentRequest) -> AgentResponse:
        return await self.generate(request.prompt, request.plan, request.feedback)

    async def generate(
        self,
        prompt: str,
        plan: Optional[str] = None,
        feedback: Optional[str] = None
    ) -> AgentResponse:
        """Produce implementation text"""

        sections = [prompt]
        if plan:
            sections.append(f"Plan:\n{plan}")
        if feedback:
            sections.append(f"Fix the following review issues:\n{feedback}")

        try:
            code = await self.generator.generate(CODER_ROLE, "\n\n".join(sections))
        except Exception as e:
            logger.warning("Coder generation failed", error=str(e))
            return AgentResponse(success=False, error=f"Coder error: {e}")

        return AgentResponse(success=True, result=code, next_agent=AgentType.VERIFIER)
