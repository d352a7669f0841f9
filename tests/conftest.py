"""Shared fixtures for agent core tests."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Sequence
from unittest.mock import AsyncMock

import pytest

from aide.domain.context.context_manager import MemoryContext
from aide.domain.context.memory.embeddings import cosine_similarity
from aide.domain.context.memory.vector_memory_store import MemoryStore
from aide.domain.ids import SequentialIdAllocator


class FakeClock:
    """Clock advancing one second per reading"""

    def __init__(self):
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class AxisEmbeddings:
    """Embedding provider with hand-picked vectors for exact similarity checks"""

    dimensions = 3

    def __init__(self, vectors: Dict[str, List[float]]):
        self.vectors = vectors

    async def embed(self, text: str) -> List[float]:
        return list(self.vectors.get(text, [0.0, 0.0, 1.0]))

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """Memory store using the reference hash embeddings"""
    return MemoryStore(id_allocator=SequentialIdAllocator(), clock=clock)


@pytest.fixture
def axis_embeddings():
    return AxisEmbeddings({
        "alpha": [1.0, 0.0, 0.0],
        "beta": [0.0, 1.0, 0.0],
        "mostly alpha": [3.0, 4.0, 0.0],  # cosine 0.6 against alpha
        "opposite alpha": [-1.0, 0.0, 0.0],
    })


@pytest.fixture
def axis_store(axis_embeddings, clock):
    """Memory store whose similarities are known exactly"""
    return MemoryStore(
        embeddings=axis_embeddings,
        id_allocator=SequentialIdAllocator(),
        clock=clock,
    )


@pytest.fixture
def memory_context(memory_store):
    return MemoryContext(memory_store)


@pytest.fixture
def good_code():
    return (
        "export function add(a: number, b: number): number {\n"
        "  try {\n"
        "    return a + b;\n"
        "  } catch (error) {\n"
        "    throw error;\n"
        "  }\n"
        "}\n"
    )


@pytest.fixture
def unhandled_code():
    """Exported code without any error handling markers"""
    return "export function add(a: number, b: number): number {\n  return a + b;\n}\n"


@pytest.fixture
def generator_returning():
    """Factory for mock text generators"""

    def _make(*responses: str) -> AsyncMock:
        generator = AsyncMock()
        if len(responses) == 1:
            generator.generate.return_value = responses[0]
        else:
            generator.generate.side_effect = list(responses)
        return generator

    return _make
