from typing import TypedDict, Annotated, List, Dict, Any, Optional, Mapping, Callable, Tuple
import asyncio
import operator
import time
from datetime import datetime
from uuid import uuid4

from langgraph.graph import StateGraph, END
import structlog

from aide.domain.context.context_manager import MemoryContext
from aide.domain.ids import IdAllocator, UUIDAllocator
from aide.domain.models.agent_state import (
    AgentRequest, AgentResponse, AgentTaskRecord, AgentType,
    OrchestrationRun, PipelineStage, TaskStatus
)
from aide.domain.models.memory_entry import MemoryEntry, utc_now
from aide.domain.orchestration.subagent import BaseSubAgent, default_agents
from aide.infrastructure.observability.logging import agent_logger, metrics
from aide.infrastructure.persistence.task_log import AgentTaskLog

logger = structlog.get_logger(__name__)

DEFAULT_STAGE_TIMEOUT = 60.0

STAGE_NODES = {
    PipelineStage.PLANNING: "planner",
    PipelineStage.CODING: "coder",
    PipelineStage.VERIFYING: "verifier",
    PipelineStage.EXECUTING: "executor",
}


class WorkflowState(TypedDict):
    """State for the pipeline graph; one instance per orchestration run"""
    prompt: str
    project_id: int
    memories: List[MemoryEntry]
    plan: Optional[str]
    code: Optional[str]
    feedback: Optional[str]
    revisions: int
    stage: PipelineStage
    trace: Annotated[List[AgentTaskRecord], operator.add]
    cancel_event: Optional[asyncio.Event]


class AgentOrchestrator:
    """Drives the Planner -> Coder -> Verifier -> Executor pipeline using LangGraph.

    The compiled graph holds no per-run data, so one orchestrator can serve
    concurrent runs. Stage failures never raise: they end the run with a
    failed task record.
    """

    def __init__(
        self,
        agents: Optional[Mapping[AgentType, BaseSubAgent]] = None,
        memory_context: Optional[MemoryContext] = None,
        task_log: Optional[AgentTaskLog] = None,
        stage_timeout: Optional[float] = DEFAULT_STAGE_TIMEOUT,
        max_revisions: int = 0,
        id_allocator: Optional[IdAllocator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.agents: Dict[AgentType, BaseSubAgent] = dict(agents) if agents is not None else default_agents()
        missing = [agent_type.value for agent_type in AgentType if agent_type not in self.agents]
        if missing:
            raise ValueError(f"Missing agents for stages: {', '.join(missing)}")
        if max_revisions < 0:
            raise ValueError("max_revisions must not be negative")

        self.memory_context = memory_context
        self.task_log = task_log
        self.stage_timeout = stage_timeout
        self.max_revisions = max_revisions
        self.id_allocator = id_allocator if id_allocator is not None else UUIDAllocator()
        self.clock = clock
        self.workflow = self._create_workflow()

    def _create_workflow(self):
        """Create the pipeline graph"""

        workflow = StateGraph(WorkflowState)

        workflow.add_node("planner", self.planning_node)
        workflow.add_node("coder", self.coding_node)
        workflow.add_node("verifier", self.verifying_node)
        workflow.add_node("executor", self.executing_node)

        workflow.set_entry_point("planner")

        stop = {
            PipelineStage.ABORTED.value: END,
            PipelineStage.CANCELLED.value: END,
        }
        workflow.add_conditional_edges(
            "planner",
            self.route_by_stage,
            {PipelineStage.CODING.value: "coder", **stop}
        )
        workflow.add_conditional_edges(
            "coder",
            self.route_by_stage,
            {PipelineStage.VERIFYING.value: "verifier", **stop}
        )
        # Verifier feedback is the only edge that goes backwards
        workflow.add_conditional_edges(
            "verifier",
            self.route_by_stage,
            {
                PipelineStage.EXECUTING.value: "executor",
                PipelineStage.CODING.value: "coder",
                **stop
            }
        )
        workflow.add_edge("executor", END)

        return workflow.compile()

    def route_by_stage(self, state: WorkflowState) -> str:
        """Route to the node owning the current stage"""

        stage = state["stage"]
        agent_logger.log_workflow_transition(
            project_id=state["project_id"],
            from_stage=state["trace"][-1].agent_type.value if state["trace"] else "start",
            to_stage="end" if stage.is_terminal else STAGE_NODES[stage],
            condition=stage.value,
        )
        return stage.value

    async def planning_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Plan the task"""

        if self._is_cancelled(state):
            return {"stage": PipelineStage.CANCELLED}

        record, response = await self._run_stage(
            AgentType.PLANNER,
            state["prompt"],
            AgentRequest(prompt=state["prompt"], project_id=state["project_id"],
                         memories=state["memories"]),
        )
        return {
            "trace": [record],
            "plan": response.result,
            "stage": PipelineStage.CODING if response.success else PipelineStage.ABORTED,
        }

    async def coding_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Generate code from the plan, applying verifier feedback on revisions"""

        if self._is_cancelled(state):
            return {"stage": PipelineStage.CANCELLED}

        record, response = await self._run_stage(
            AgentType.CODER,
            state["feedback"] or state["plan"] or "",
            AgentRequest(prompt=state["prompt"], project_id=state["project_id"],
                         plan=state["plan"], feedback=state["feedback"]),
        )
        return {
            "trace": [record],
            "code": response.result,
            "stage": PipelineStage.VERIFYING if response.success else PipelineStage.ABORTED,
        }

    async def verifying_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Verify the generated code"""

        if self._is_cancelled(state):
            return {"stage": PipelineStage.CANCELLED}

        code = state["code"] or ""
        record, response = await self._run_stage(
            AgentType.VERIFIER,
            code,
            AgentRequest(prompt=state["prompt"], project_id=state["project_id"], code=code),
        )

        if response.success:
            return {"trace": [record], "feedback": None, "stage": PipelineStage.EXECUTING}

        if response.next_agent == AgentType.CODER and state["revisions"] < self.max_revisions:
            logger.info("Sending code back for revision",
                        revision=state["revisions"] + 1, max_revisions=self.max_revisions)
            return {
                "trace": [record],
                "feedback": response.error,
                "revisions": state["revisions"] + 1,
                "stage": PipelineStage.CODING,
            }

        return {"trace": [record], "stage": PipelineStage.ABORTED}

    async def executing_node(self, state: WorkflowState) -> Dict[str, Any]:
        """Run the final build/deploy step"""

        if self._is_cancelled(state):
            return {"stage": PipelineStage.CANCELLED}

        code = state["code"] or ""
        record, response = await self._run_stage(
            AgentType.EXECUTOR,
            code,
            AgentRequest(prompt=state["prompt"], project_id=state["project_id"], code=code),
        )
        return {
            "trace": [record],
            "stage": PipelineStage.DONE if response.success else PipelineStage.ABORTED,
        }

    def _is_cancelled(self, state: WorkflowState) -> bool:
        cancel_event = state.get("cancel_event")
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Orchestration cancelled at stage boundary", completed_stages=len(state["trace"]))
            return True
        return False

    async def _run_stage(
        self,
        agent_type: AgentType,
        task_prompt: str,
        request: AgentRequest
    ) -> Tuple[AgentTaskRecord, AgentResponse]:
        """Invoke one agent and return its finalized task record"""

        agent = self.agents[agent_type]
        record = AgentTaskRecord(
            id=self.id_allocator.next_id(agent_type.value),
            project_id=request.project_id,
            agent_type=agent_type,
            status=TaskStatus.RUNNING,
            prompt=task_prompt,
            created_at=self.clock(),
        )
        agent_logger.log_agent_event("stage_started", agent.name, request.project_id,
                                     task_id=record.id)

        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(agent.invoke(request), timeout=self.stage_timeout)
        except asyncio.TimeoutError:
            response = AgentResponse(
                success=False,
                error=f"{agent.name} timed out after {self.stage_timeout}s"
            )
        except Exception as e:
            logger.exception("Agent raised unexpectedly", agent=agent.name)
            response = AgentResponse(success=False, error=f"{agent.name} error: {e}")

        finished = record.finish(response, completed_at=self.clock())
        duration_ms = (time.perf_counter() - started) * 1000

        metrics.record_latency(f"agent.{agent_type.value}", duration_ms)
        agent_logger.log_agent_event(
            "stage_completed" if response.success else "stage_failed",
            agent.name,
            request.project_id,
            data={"task_id": finished.id, "error": finished.error},
            duration_ms=duration_ms,
        )

        await self._persist(finished)
        return finished, response

    async def _persist(self, record: AgentTaskRecord) -> None:
        if self.task_log is None:
            return
        try:
            await self.task_log.record(record)
        except Exception:
            logger.error("Failed to persist task record", task_id=record.id, exc_info=True)

    async def _load_memories(self, subject_id: Optional[int], project_id: int, prompt: str) -> List[MemoryEntry]:
        if self.memory_context is None or subject_id is None:
            return []
        try:
            return await self.memory_context.get_context_for_task(subject_id, project_id, prompt)
        except Exception:
            logger.warning("Could not load memory context", subject_id=subject_id, exc_info=True)
            return []

    async def _learn(self, subject_id: Optional[int], project_id: int, prompt: str, run: OrchestrationRun) -> None:
        if self.memory_context is None or subject_id is None:
            return
        last = run.last_record
        if last is None or run.final_stage == PipelineStage.CANCELLED:
            return

        result_text = (last.result if run.succeeded else last.error) or last.result or ""
        try:
            await self.memory_context.learn_from_execution(
                subject_id, project_id, prompt, result_text, run.succeeded
            )
        except Exception:
            logger.warning("Could not store execution outcome", subject_id=subject_id, exc_info=True)

    async def run(
        self,
        prompt: str,
        project_id: int,
        *,
        subject_id: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> OrchestrationRun:
        """Run the pipeline and report the trace with the final stage"""

        run_id = uuid4().hex[:12]
        with structlog.contextvars.bound_contextvars(run_id=run_id, project_id=project_id):
            logger.info("Orchestration started", subject_id=subject_id)

            initial_state: WorkflowState = {
                "prompt": prompt,
                "project_id": project_id,
                "memories": await self._load_memories(subject_id, project_id, prompt),
                "plan": None,
                "code": None,
                "feedback": None,
                "revisions": 0,
                "stage": PipelineStage.PLANNING,
                "trace": [],
                "cancel_event": cancel_event,
            }

            final_state = await self.workflow.ainvoke(
                initial_state,
                config={"recursion_limit": 8 + 2 * self.max_revisions},
            )

            run = OrchestrationRun(
                trace=list(final_state["trace"]),
                final_stage=final_state["stage"],
                revisions=final_state["revisions"],
            )
            metrics.increment_counter("orchestration.runs", tags={"final_stage": run.final_stage.value})
            logger.info("Orchestration finished", **run.get_summary())

            await self._learn(subject_id, project_id, prompt, run)

        return run

    async def orchestrate(
        self,
        prompt: str,
        project_id: int,
        *,
        subject_id: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> List[AgentTaskRecord]:
        """Run the pipeline and return its trace in stage-invocation order"""

        run = await self.run(prompt, project_id, subject_id=subject_id, cancel_event=cancel_event)
        return list(run.trace)
