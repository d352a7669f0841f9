from abc import ABC, abstractmethod
from typing import Dict, Any
from datetime import datetime, timezone

from aide.domain.models.agent_state import AgentRequest, AgentResponse, AgentType


class BaseSubAgent(ABC):
    """Base class for pipeline stage agents"""

    agent_type: AgentType

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.created_at = datetime.now(timezone.utc)
        self.last_active = self.created_at

    async def invoke(self, request: AgentRequest) -> AgentResponse:
        """Run this agent's stage for an orchestrator request"""
        self.update_activity()
        if not self.validate_input(request):
            return AgentResponse(
                success=False,
                error=f"{self.name} received invalid input"
            )
        return await self.process(request)

    @abstractmethod
    async def process(self, request: AgentRequest) -> AgentResponse:
        """Process a validated request"""
        pass

    @abstractmethod
    def validate_input(self, request: AgentRequest) -> bool:
        """Validate input data"""
        pass

    def update_activity(self):
        """Update last activity timestamp"""
        self.last_active = datetime.now(timezone.utc)

    def get_info(self) -> Dict[str, Any]:
        """Get agent information"""
        return {
            "name": self.name,
            "agent_type": self.agent_type.value,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "last_active": self.last_active.isoformat()
        }
