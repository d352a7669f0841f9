from typing import Any, Callable, Dict, List, Optional, Union
import asyncio
import time
import weakref
from datetime import datetime

import structlog

from aide.domain.errors import NotFoundOrUnauthorized
from aide.domain.ids import IdAllocator, UUIDAllocator
from aide.domain.models.memory_entry import (
    MemoryEntry, MemoryKind, MemoryQuery, MemoryRetrievalResult,
    MemoryStatistics, MemoryUpdate, utc_now
)
from aide.infrastructure.observability.logging import agent_logger, metrics
from aide.infrastructure.persistence.repository import InMemoryRepository, Repository
from .embeddings import EmbeddingProvider, HashEmbeddingProvider

logger = structlog.get_logger(__name__)

DEFAULT_RELEVANCE_FLOOR = 0.3
DEFAULT_RETRIEVAL_LIMIT = 10
DEFAULT_STATISTICS_SIZE = 5


class MemoryStore:
    """Vector memory store with per-subject isolation.

    Every operation on a subject runs under that subject's lock, so access
    bookkeeping and embedding regeneration never race. Entries handed to
    callers are copies; the repository is the only place they live.
    """

    def __init__(
        self,
        embeddings: Optional[EmbeddingProvider] = None,
        repository: Optional[Repository[MemoryEntry]] = None,
        id_allocator: Optional[IdAllocator] = None,
        relevance_floor: float = DEFAULT_RELEVANCE_FLOOR,
        default_limit: int = DEFAULT_RETRIEVAL_LIMIT,
        statistics_size: int = DEFAULT_STATISTICS_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.embeddings = embeddings if embeddings is not None else HashEmbeddingProvider()
        self.repository = repository if repository is not None else InMemoryRepository()
        self.id_allocator = id_allocator if id_allocator is not None else UUIDAllocator()
        self.relevance_floor = relevance_floor
        self.default_limit = default_limit
        self.statistics_size = statistics_size
        self.clock = clock
        # a lock lives only while some operation on its subject holds or awaits it
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, subject_id: int) -> asyncio.Lock:
        lock = self._locks.get(subject_id)
        if lock is None:
            lock = self._locks[subject_id] = asyncio.Lock()
        return lock

    async def _embed(self, text: str) -> List[float]:
        embedding = await self.embeddings.embed(text)
        if len(embedding) != self.embeddings.dimensions:
            raise ValueError(
                f"Embedding has {len(embedding)} dimensions, expected {self.embeddings.dimensions}"
            )
        return list(embedding)

    async def store(
        self,
        subject_id: int,
        kind: Union[MemoryKind, str],
        key: str,
        value: str,
        scope_id: Optional[int] = None
    ) -> MemoryEntry:
        """Embed and persist a new memory entry"""

        kind = MemoryKind(kind)
        embedding = await self._embed(value)
        now = self.clock()

        entry = MemoryEntry(
            id=self.id_allocator.next_id("mem"),
            subject_id=subject_id,
            scope_id=scope_id,
            kind=kind,
            key=key,
            value=value,
            embedding=embedding,
            created_at=now,
            updated_at=now,
            access_count=0,
            last_accessed_at=now,
        )

        async with self._lock_for(subject_id):
            await self.repository.insert(subject_id, entry.id, entry)

        agent_logger.log_memory_event("store", subject_id, {"memory_id": entry.id, "kind": kind.value})
        metrics.increment_counter("memory.store", tags={"kind": kind.value})
        return entry

    async def retrieve(self, query: Union[MemoryQuery, Dict[str, Any]]) -> MemoryRetrievalResult:
        """Rank a subject's memories against an optional query text.

        Returned entries have their access count bumped; the bump is part of
        the retrieval, not a separate step.
        """

        if not isinstance(query, MemoryQuery):
            query = MemoryQuery.model_validate(query)

        started = time.perf_counter()
        limit = query.limit or self.default_limit

        async with self._lock_for(query.subject_id):
            candidates = [
                entry for entry in await self.repository.select(query.subject_id)
                if (query.scope_id is None or entry.scope_id == query.scope_id)
                and (query.kind is None or entry.kind == query.kind)
            ]

            if query.query_text:
                query_embedding = await self._embed(query.query_text)
                matched = []
                for entry in candidates:
                    score = self.embeddings.similarity(entry.embedding, query_embedding)
                    if score > self.relevance_floor:
                        entry.relevance_score = score
                        matched.append(entry)
            else:
                matched = candidates
                for entry in matched:
                    entry.relevance_score = 0.0

            # stable sort keeps insertion order for full ties
            matched.sort(key=lambda e: (e.relevance_score, e.access_count), reverse=True)
            limited = matched[:limit]

            now = self.clock()
            for entry in limited:
                entry.access_count += 1
                entry.last_accessed_at = now
                await self.repository.update(
                    query.subject_id, entry.id, entry.model_copy(update={"relevance_score": None})
                )

        elapsed_ms = (time.perf_counter() - started) * 1000
        metrics.record_latency("memory.retrieve", elapsed_ms)
        logger.debug("Memories retrieved", subject_id=query.subject_id,
                     returned=len(limited), matched=len(matched))

        return MemoryRetrievalResult(
            entries=limited,
            total_matched=len(matched),
            elapsed_ms=elapsed_ms,
        )

    async def get(self, entry_id: str, subject_id: int) -> MemoryEntry:
        """Read an entry without touching its access statistics"""

        async with self._lock_for(subject_id):
            return await self._get_owned(entry_id, subject_id)

    async def _get_owned(self, entry_id: str, subject_id: int) -> MemoryEntry:
        entry = await self.repository.get(subject_id, entry_id)
        if entry is None:
            raise NotFoundOrUnauthorized(entry_id, subject_id)
        return entry

    async def update(
        self,
        entry_id: str,
        subject_id: int,
        updates: Union[MemoryUpdate, Dict[str, Any]]
    ) -> MemoryEntry:
        """Apply a partial update, re-embedding when the value changes"""

        if not isinstance(updates, MemoryUpdate):
            updates = MemoryUpdate.model_validate(updates)
        changes = updates.model_dump(exclude_unset=True)
        # key and value are required on the entry; scope_id may be cleared
        for field in ("key", "value"):
            if changes.get(field) is None:
                changes.pop(field, None)

        async with self._lock_for(subject_id):
            entry = await self._get_owned(entry_id, subject_id)

            if "value" in changes:
                changes["embedding"] = await self._embed(changes["value"])
            changes["updated_at"] = self.clock()

            updated = entry.model_copy(update=changes)
            await self.repository.update(subject_id, entry_id, updated)

        agent_logger.log_memory_event("update", subject_id, {
            "memory_id": entry_id,
            "fields": sorted(k for k in changes if k not in ("embedding", "updated_at")),
        })
        return updated

    async def delete(self, entry_id: str, subject_id: int) -> bool:
        """Delete an entry owned by the subject"""

        async with self._lock_for(subject_id):
            await self._get_owned(entry_id, subject_id)
            removed = await self.repository.delete(subject_id, entry_id)

        agent_logger.log_memory_event("delete", subject_id, {"memory_id": entry_id})
        metrics.increment_counter("memory.delete")
        return removed

    async def statistics(self, subject_id: int) -> MemoryStatistics:
        """Aggregate counts, most used and newest entries for a subject"""

        async with self._lock_for(subject_id):
            entries = await self.repository.select(subject_id)

        count_by_kind = {kind: 0 for kind in MemoryKind}
        for entry in entries:
            count_by_kind[entry.kind] += 1

        top_accessed = sorted(entries, key=lambda e: e.access_count, reverse=True)
        most_recent = sorted(entries, key=lambda e: e.created_at, reverse=True)

        return MemoryStatistics(
            total_memories=len(entries),
            count_by_kind=count_by_kind,
            top_accessed=top_accessed[:self.statistics_size],
            most_recent=most_recent[:self.statistics_size],
        )
