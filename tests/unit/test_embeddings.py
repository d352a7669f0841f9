"""Unit tests for embedding generation and similarity."""

import math

import pytest

from aide.domain.context.memory.embeddings import (
    HashEmbeddingProvider,
    cosine_similarity,
    text_hash,
)


class TestTextHash:
    """Unit tests for the stable text hash."""

    def test_known_values(self):
        """Hash follows h * 31 + code point."""
        assert text_hash("") == 0
        assert text_hash("a") == 97
        assert text_hash("ab") == 97 * 31 + 98

    def test_wraps_to_signed_32_bit(self):
        """Long inputs stay within the int32 range."""
        h = text_hash("x" * 1000)
        assert -(2 ** 31) <= h < 2 ** 31


@pytest.mark.asyncio
class TestHashEmbeddingProvider:
    """Unit tests for the reference embedding provider."""

    async def test_embedding_is_deterministic(self):
        """Same text always yields the same vector."""
        provider = HashEmbeddingProvider()

        first = await provider.embed("build a todo list")
        second = await HashEmbeddingProvider().embed("build a todo list")

        assert first == second

    async def test_default_dimensions(self):
        """Vectors have 384 components in [0, 1]."""
        embedding = await HashEmbeddingProvider().embed("hello")

        assert len(embedding) == 384
        assert all(0.0 <= x <= 1.0 for x in embedding)

    async def test_component_formula(self):
        """Component i is sin(h + i) * 0.5 + 0.5."""
        embedding = await HashEmbeddingProvider(dimensions=4).embed("a")

        expected = [math.sin(97 + i) * 0.5 + 0.5 for i in range(4)]
        assert embedding == pytest.approx(expected)

    async def test_different_texts_differ(self):
        """Distinct texts produce distinct vectors."""
        provider = HashEmbeddingProvider()

        assert await provider.embed("lesson one") != await provider.embed("lesson two")

    async def test_self_similarity_is_one(self):
        """Embedding compared with itself scores ~1."""
        provider = HashEmbeddingProvider()
        vector = await provider.embed("use transactions for batch writes")

        assert provider.similarity(vector, vector) == pytest.approx(1.0)

    async def test_similarity_bounds_on_embeddings(self):
        """Similarities between embeddings stay within [-1, 1]."""
        provider = HashEmbeddingProvider(dimensions=64)
        texts = ["alpha", "beta", "gamma", "delta", "", "a much longer sentence"]
        vectors = [await provider.embed(t) for t in texts]

        for a in vectors:
            for b in vectors:
                assert -1.0 <= provider.similarity(a, b) <= 1.0


class TestCosineSimilarity:
    """Unit tests for cosine similarity."""

    def test_provider_rejects_non_positive_dimensions(self):
        """Dimensions must be positive."""
        with pytest.raises(ValueError, match="dimensions"):
            HashEmbeddingProvider(dimensions=0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_zero_magnitude_returns_zero(self):
        """Zero vectors are defined to have no similarity."""
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch_returns_zero(self):
        """Vectors of different length are not an error."""
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 0.0, 0.0], [3.0, 4.0, 0.0]) == 0.6
