from typing import List, Optional, Sequence
import re

from pydantic import BaseModel, Field

from aide.domain.errors import VerificationFailure
from aide.domain.models.agent_state import AgentRequest, AgentResponse, AgentType
from .base_subagent import BaseSubAgent


class QualityRules(BaseModel):
    """Markers the verifier looks for in generated code"""
    export_marker: str = "export"
    loose_type_marker: str = "any"
    max_loose_type_uses: int = Field(default=3, ge=0)
    error_markers: List[str] = Field(default_factory=lambda: ["error", "try"])


class VerifierAgent(BaseSubAgent):
    """Validates generated code against fixed quality checks.

    A failed verification hands control back to the coder through
    ``next_agent``; it is the only backward edge of the pipeline.
    """

    agent_type = AgentType.VERIFIER

    def __init__(self, rules: Optional[QualityRules] = None):
        super().__init__("Verifier", "Validates generated code and checks for errors")
        self.rules = rules or QualityRules()

    def validate_input(self, request: AgentRequest) -> bool:
        return request.code is not None

    async def process(self, request: AgentRequest) -> AgentResponse:
        return await self.verify(request.code)

    async def verify(self, code: str) -> AgentResponse:
        """Check code quality"""

        issues = self.check_code_quality(code)

        if not issues:
            return AgentResponse(
                success=True,
                result="Code verification passed. No issues found.",
                next_agent=AgentType.EXECUTOR,
            )

        return AgentResponse(
            success=False,
            error=str(VerificationFailure(issues)),
            next_agent=AgentType.CODER,
        )

    def check_code_quality(self, code: str) -> List[str]:
        """Run every check and collect the issues found"""

        rules = self.rules
        issues = []

        if rules.export_marker not in code:
            issues.append("No exports found in code")

        if _count_word(code, rules.loose_type_marker) > rules.max_loose_type_uses:
            issues.append(
                f"Excessive use of '{rules.loose_type_marker}' type - consider proper typing"
            )

        if not _contains_any(code, rules.error_markers):
            issues.append("No error handling detected")

        return issues


def _contains_any(code: str, markers: Sequence[str]) -> bool:
    return any(marker in code for marker in markers)


def _count_word(code: str, marker: str) -> int:
    # whole identifiers only, so names like ``Company`` do not count as ``any``
    return len(re.findall(rf"\b{re.escape(marker)}\b", code))
