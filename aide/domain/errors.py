"""
Error kinds raised or recorded by the agent core.

Stage failures (generation, verification, execution) are captured by the
orchestrator and surface as failed task records. ``NotFoundOrUnauthorized``
is raised to the caller of the memory store.
"""

from typing import List, Optional


class AideError(Exception):
    """Base class for agent core errors"""


class GenerationFailure(AideError):
    """LLM generation failed or timed out"""


class VerificationFailure(AideError):
    """Generated code did not pass the quality checks"""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__(
            f"Code verification found {len(self.issues)} issues:\n" + "\n".join(self.issues)
        )


class ExecutionFailure(AideError):
    """Build or deployment step failed"""


class NotFoundOrUnauthorized(AideError):
    """Memory entry is absent or owned by a different subject"""

    def __init__(self, entry_id: str, subject_id: Optional[int] = None):
        self.entry_id = entry_id
        self.subject_id = subject_id
        super().__init__("Memory not found or unauthorized")
