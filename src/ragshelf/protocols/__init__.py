"""Protocol definitions for extensible components."""

from ragshelf.protocols.chunker import ChunkingStrategy
from ragshelf.protocols.embedder import EmbeddingProvider
from ragshelf.protocols.store import DocumentStore

__all__ = ["DocumentStore", "EmbeddingProvider", "ChunkingStrategy"]
