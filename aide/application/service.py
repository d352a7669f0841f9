from typing import List, Optional
import asyncio

import structlog

from aide.domain.context.context_manager import MemoryContext
from aide.domain.context.memory.embeddings import EmbeddingProvider, HashEmbeddingProvider
from aide.domain.context.memory.vector_memory_store import MemoryStore
from aide.domain.llm.generator import TextGenerator
from aide.domain.models.agent_state import AgentTaskRecord, OrchestrationRun, TaskStatus
from aide.domain.models.memory_entry import MemoryStatistics
from aide.domain.orchestration.core.main_agent import AgentOrchestrator
from aide.domain.orchestration.subagent import default_agents
from aide.domain.tool.tool_executor import ExecutionBackend
from aide.infrastructure.config.settings import AideSettings, get_settings
from aide.infrastructure.observability.logging import setup_logging
from aide.infrastructure.persistence.task_log import AgentTaskLog

logger = structlog.get_logger(__name__)


class AideService:
    """Wires settings, memory and the agent pipeline together.

    Each service owns its own memory store; nothing here is process-global,
    so tests and request handlers can build as many as they need.
    """

    def __init__(
        self,
        settings: Optional[AideSettings] = None,
        generator: Optional[TextGenerator] = None,
        backend: Optional[ExecutionBackend] = None,
        embeddings: Optional[EmbeddingProvider] = None,
        configure_logging: bool = True,
    ):
        self.settings = settings or get_settings()

        if configure_logging:
            setup_logging(
                log_level=self.settings.log_level,
                log_format=self.settings.log_format,
                service_name=self.settings.service_name,
            )

        self.memory_store = MemoryStore(
            embeddings=embeddings or HashEmbeddingProvider(self.settings.embedding_dimensions),
            relevance_floor=self.settings.relevance_floor,
            default_limit=self.settings.retrieval_limit,
            statistics_size=self.settings.statistics_size,
        )
        self.memory_context = MemoryContext(self.memory_store, context_limit=self.settings.context_limit)
        self.task_log = AgentTaskLog()
        self.orchestrator = AgentOrchestrator(
            agents=default_agents(generator=generator, backend=backend),
            memory_context=self.memory_context,
            task_log=self.task_log,
            stage_timeout=self.settings.stage_timeout_seconds,
            max_revisions=self.settings.max_revisions,
        )

        logger.info("Agent service initialized", service=self.settings.service_name,
                    max_revisions=self.settings.max_revisions)

    async def run_task(
        self,
        subject_id: int,
        project_id: int,
        prompt: str,
        cancel_event: Optional[asyncio.Event] = None
    ) -> OrchestrationRun:
        """Run the pipeline for a subject's project with memory enabled"""

        return await self.orchestrator.run(
            prompt, project_id, subject_id=subject_id, cancel_event=cancel_event
        )

    async def project_tasks(self, project_id: int, status: Optional[TaskStatus] = None) -> List[AgentTaskRecord]:
        """Task records logged for a project"""

        return await self.task_log.list_tasks(project_id, status)

    async def memory_statistics(self, subject_id: int) -> MemoryStatistics:
        """Memory statistics for a subject"""

        return await self.memory_context.get_memory_stats(subject_id)
