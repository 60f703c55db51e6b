"""Embedding providers for vector generation."""

from ragshelf.embedders.hashing import HashingEmbedder
from ragshelf.embedders.sentence_transformer import SentenceTransformerEmbedder
from ragshelf.protocols import EmbeddingProvider


def get_embedder(backend: str, model_name: str | None = None) -> EmbeddingProvider:
    """Build the embedding provider named by configuration.

    Args:
        backend: 'sentence-transformers' or 'hashing'
        model_name: Model for the sentence-transformers backend

    Returns:
        An EmbeddingProvider instance
    """
    if backend == "sentence-transformers":
        return SentenceTransformerEmbedder(model_name)
    if backend == "hashing":
        return HashingEmbedder()
    raise ValueError(f"Unknown embedding backend: {backend}")


__all__ = ["SentenceTransformerEmbedder", "HashingEmbedder", "get_embedder"]
