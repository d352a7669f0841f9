from typing import List, Optional, Sequence
import time
from uuid import uuid4

import structlog

from aide.domain.models.memory_entry import MemoryEntry, MemoryKind, MemoryQuery, MemoryStatistics
from .memory.vector_memory_store import MemoryStore

logger = structlog.get_logger(__name__)

DEFAULT_CONTEXT_LIMIT = 5


class MemoryContext:
    """Task-oriented view of the memory store: recall before a task, learn after it"""

    def __init__(self, store: MemoryStore, context_limit: int = DEFAULT_CONTEXT_LIMIT):
        self.store = store
        self.context_limit = context_limit

    async def get_context_for_task(
        self,
        subject_id: int,
        scope_id: Optional[int],
        task_description: str
    ) -> List[MemoryEntry]:
        """Get memories relevant to a task description"""

        result = await self.store.retrieve(MemoryQuery(
            subject_id=subject_id,
            scope_id=scope_id,
            query_text=task_description,
            limit=self.context_limit,
        ))

        logger.info("Loaded task context", subject_id=subject_id, scope_id=scope_id,
                    memories=len(result.entries), matched=result.total_matched)
        return result.entries

    async def learn_from_execution(
        self,
        subject_id: int,
        scope_id: Optional[int],
        task_description: str,
        result_text: str,
        succeeded: bool
    ) -> MemoryEntry:
        """Store the outcome of a task as a solution or an error"""

        kind = MemoryKind.SOLUTION if succeeded else MemoryKind.ERROR
        key = f"{task_description}-{int(time.time() * 1000)}-{uuid4().hex[:6]}"

        return await self.store.store(subject_id, kind, key, result_text, scope_id=scope_id)

    async def get_memory_stats(self, subject_id: int) -> MemoryStatistics:
        """Get memory statistics for a subject"""

        return await self.store.statistics(subject_id)

    @staticmethod
    def format_for_prompt(entries: Sequence[MemoryEntry]) -> str:
        """Render memories as a bullet list for an agent prompt"""

        lines = []
        for entry in entries:
            value = " ".join(entry.value.split())
            if len(value) > 200:
                value = value[:197] + "..."
            lines.append(f"- [{entry.kind.value}] {entry.key}: {value}")
        return "\n".join(lines)
