from .embeddings import EmbeddingProvider, HashEmbeddingProvider, cosine_similarity
from .vector_memory_store import MemoryStore

__all__ = ["EmbeddingProvider", "HashEmbeddingProvider", "cosine_similarity", "MemoryStore"]
