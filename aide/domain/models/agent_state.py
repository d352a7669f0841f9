from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum

from aide.domain.models.memory_entry import MemoryEntry


class AgentType(str, Enum):
    """Pipeline stage performed by an agent"""
    PLANNER = "planner"
    CODER = "coder"
    VERIFIER = "verifier"
    EXECUTOR = "executor"


class TaskStatus(str, Enum):
    """Agent task execution status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineStage(str, Enum):
    """Position of an orchestration run in the pipeline state machine"""
    PLANNING = "planning"
    CODING = "coding"
    VERIFYING = "verifying"
    EXECUTING = "executing"
    DONE = "done"
    ABORTED = "aborted"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.DONE, PipelineStage.ABORTED, PipelineStage.CANCELLED)


FINAL_STATUSES = (TaskStatus.COMPLETED, TaskStatus.FAILED)


class AgentResponse(BaseModel):
    """Outcome of a single agent invocation"""
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None
    next_agent: Optional[AgentType] = Field(None, description="Stage the agent hands over to")


class AgentRequest(BaseModel):
    """Input handed to an agent by the orchestrator"""
    prompt: str = Field(description="Original task description")
    project_id: int = Field(description="Project the task belongs to")
    plan: Optional[str] = None
    code: Optional[str] = None
    feedback: Optional[str] = Field(None, description="Verifier issues from a previous pass")
    memories: List[MemoryEntry] = Field(default_factory=list)


class AgentTaskRecord(BaseModel):
    """One element of an orchestration trace.

    Records are frozen: a running record is replaced by a finalized copy
    through ``finish`` rather than mutated.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique task identifier")
    project_id: int = Field(description="Task grouping key")
    agent_type: AgentType
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    prompt: str
    result: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINAL_STATUSES

    def finish(self, response: AgentResponse, completed_at: datetime) -> "AgentTaskRecord":
        """Return the finalized copy for an agent response"""
        return self.model_copy(update={
            "status": TaskStatus.COMPLETED if response.success else TaskStatus.FAILED,
            "result": response.result,
            "error": response.error,
            "completed_at": completed_at,
        })


class OrchestrationRun(BaseModel):
    """Result of one end-to-end pipeline run"""
    trace: List[AgentTaskRecord] = Field(default_factory=list)
    final_stage: PipelineStage
    revisions: int = 0

    @property
    def succeeded(self) -> bool:
        return self.final_stage == PipelineStage.DONE

    @property
    def last_record(self) -> Optional[AgentTaskRecord]:
        return self.trace[-1] if self.trace else None

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the run"""
        last = self.last_record
        return {
            "final_stage": self.final_stage.value,
            "stages": [record.agent_type.value for record in self.trace],
            "revisions": self.revisions,
            "last_status": last.status.value if last else None,
            "last_error": last.error if last else None,
        }
