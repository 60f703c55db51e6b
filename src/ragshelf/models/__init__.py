"""Data models for ragshelf."""

from ragshelf.models.document import (
    Chunk,
    ChunkMetadata,
    Document,
    DocumentProjection,
    TextSpan,
    chunk_id,
    utcnow,
)
from ragshelf.models.results import ChunkHit, DocumentResult, IndexStats, RebuildResult

__all__ = [
    "Document",
    "Chunk",
    "ChunkMetadata",
    "DocumentProjection",
    "TextSpan",
    "ChunkHit",
    "DocumentResult",
    "RebuildResult",
    "IndexStats",
    "chunk_id",
    "utcnow",
]
