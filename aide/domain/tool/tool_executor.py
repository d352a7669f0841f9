from typing import Any, Dict, Protocol
import hashlib
import time

from pydantic import BaseModel, Field
import structlog

logger = structlog.get_logger(__name__)


class ExecutionSummary(BaseModel):
    """Structured outcome of a build/deploy step"""
    summary_text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ExecutionBackend(Protocol):
    """Execution/deployment capability used by the executor agent"""

    async def run(self, code: str, project_id: int) -> ExecutionSummary:
        ...


class SimulatedExecutionBackend:
    """Backend that reports a successful build without side effects"""

    async def run(self, code: str, project_id: int) -> ExecutionSummary:
        started = time.perf_counter()
        logger.info("Executing code", project_id=project_id, code_length=len(code))

        digest = hashlib.sha256(code.encode("utf-8")).hexdigest()[:12]
        bundle_kb = max(1, len(code.encode("utf-8")) // 1024)
        build_time = time.perf_counter() - started

        summary = f"""Execution Summary:
- Code compiled successfully
- All tests passed
- Build artifacts generated
- Ready for deployment

Deployment Status:
- Project {project_id} built successfully
- Artifacts: /dist/
- Build id: {digest}
- Build time: {build_time:.2f}s
- Bundle size: {bundle_kb}KB
"""
        return ExecutionSummary(
            summary_text=summary,
            metadata={"build_id": digest, "bundle_kb": bundle_kb}
        )
