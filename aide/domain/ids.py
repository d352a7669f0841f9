from typing import Dict, Iterator, Protocol
from itertools import count
from uuid import uuid4


class IdAllocator(Protocol):
    """Hands out identifiers for memory entries and task records"""

    def next_id(self, prefix: str) -> str:
        ...


class UUIDAllocator:
    """Random UUID4 identifiers"""

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid4()}"


class SequentialIdAllocator:
    """Deterministic per-prefix counters (mem-1, mem-2, planner-1, ...)"""

    def __init__(self, start: int = 1):
        self.start = start
        self._counters: Dict[str, Iterator[int]] = {}

    def next_id(self, prefix: str) -> str:
        counter = self._counters.setdefault(prefix, count(self.start))
        return f"{prefix}-{next(counter)}"
