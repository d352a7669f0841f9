"""Embedding providers for semantic memory retrieval."""

import math
from typing import List, Protocol, Sequence


class EmbeddingProvider(Protocol):
    """Maps text to a fixed-length vector.

    Real providers are usually network bound, so ``embed`` is a coroutine.
    """

    dimensions: int

    async def embed(self, text: str) -> List[float]:
        ...

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1].

    Returns 0.0 when the dimensions differ or either vector has zero
    magnitude.
    """
    if len(a) != len(b):
        return 0.0

    dot_product = 0.0
    magnitude_a = 0.0
    magnitude_b = 0.0
    for x, y in zip(a, b):
        dot_product += x * y
        magnitude_a += x * x
        magnitude_b += y * y

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    similarity = dot_product / (math.sqrt(magnitude_a) * math.sqrt(magnitude_b))
    # float drift can push identical vectors just past 1.0
    return max(-1.0, min(1.0, similarity))


def text_hash(text: str) -> int:
    """32-bit signed rolling hash (h * 31 + code point), stable across processes"""
    h = 0
    for char in text:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


class HashEmbeddingProvider:
    """Deterministic mock embedding for tests and offline runs.

    Component ``i`` is ``sin(h + i) * 0.5 + 0.5`` for the text hash ``h``,
    so every component lies in [0, 1] and equal texts embed identically.
    """

    def __init__(self, dimensions: int = 384):
        if dimensions < 1:
            raise ValueError(f"dimensions must be positive, got {dimensions}")
        self.dimensions = dimensions

    async def embed(self, text: str) -> List[float]:
        h = text_hash(text)
        return [math.sin(h + i) * 0.5 + 0.5 for i in range(self.dimensions)]

    def similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)
