"""Result types returned by the index API."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ragshelf.models.document import Chunk


@dataclass
class ChunkHit:
    """A chunk that scored at or above the similarity threshold."""

    chunk: Chunk
    similarity: float


@dataclass
class DocumentResult:
    """One ranked document, deduplicated from its matching chunks.

    ``content`` is the content of the best-scoring chunk and
    ``relevance_score`` its similarity.
    """

    document_id: str
    title: str
    type: str
    category: str
    content: str
    relevance_score: float
    matching_chunks: list[ChunkHit] = field(default_factory=list)


@dataclass(frozen=True)
class RebuildResult:
    documents_indexed: int
    chunks_indexed: int


@dataclass(frozen=True)
class IndexStats:
    """Summary of a vendor index; zeroed for vendors with no index."""

    total_documents: int = 0
    indexed_chunks: int = 0
    memory_usage: str = "0 KB"
    last_update: Optional[datetime] = None
    is_loaded: bool = False
