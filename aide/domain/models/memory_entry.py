from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryKind(str, Enum):
    """Kind of learned knowledge"""
    LESSON = "lesson"
    PREFERENCE = "preference"
    SOLUTION = "solution"
    ERROR = "error"


class MemoryEntry(BaseModel):
    """A persisted unit of learned knowledge with its embedding"""
    id: str = Field(description="Opaque identifier assigned at creation")
    subject_id: int = Field(description="Owning principal")
    scope_id: Optional[int] = Field(None, description="Optional secondary scope, usually a project")
    kind: MemoryKind
    key: str
    value: str
    embedding: List[float] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    access_count: int = Field(default=0, ge=0)
    last_accessed_at: datetime = Field(default_factory=utc_now)
    relevance_score: Optional[float] = Field(None, description="Set on retrieval results only")


class MemoryUpdate(BaseModel):
    """Partial update of a memory entry; kind and ownership cannot change"""
    model_config = ConfigDict(extra="forbid")

    key: Optional[str] = None
    value: Optional[str] = None
    scope_id: Optional[int] = None


class MemoryQuery(BaseModel):
    """Retrieval request scoped to a single subject"""
    subject_id: int
    scope_id: Optional[int] = None
    kind: Optional[MemoryKind] = None
    query_text: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1, description="Defaults to the store's retrieval limit")


class MemoryRetrievalResult(BaseModel):
    """Ranked retrieval output"""
    entries: List[MemoryEntry] = Field(default_factory=list)
    total_matched: int = 0
    elapsed_ms: float = 0.0


class MemoryStatistics(BaseModel):
    """Aggregated view over one subject's memories"""
    total_memories: int = 0
    count_by_kind: Dict[MemoryKind, int] = Field(
        default_factory=lambda: {kind: 0 for kind in MemoryKind}
    )
    top_accessed: List[MemoryEntry] = Field(default_factory=list)
    most_recent: List[MemoryEntry] = Field(default_factory=list)
