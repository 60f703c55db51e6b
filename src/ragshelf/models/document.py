"""Core data models for vendor documents and their chunks."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def chunk_id(document_id: str, ordinal: int) -> str:
    """Deterministic chunk identity, stable across rebuilds of the same document."""
    return f"{document_id}_{ordinal}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TextSpan:
    """A bounded segment of text produced by a chunking strategy.

    Offsets are Python string (code point) indices, not UTF-8 byte
    offsets: ``content == text[start_offset:end_offset]``.
    """

    content: str
    ordinal: int
    start_offset: int
    end_offset: int


@dataclass
class ChunkMetadata:
    """Document-level labels and source position carried by each chunk.

    ``start_offset`` and ``end_offset`` are code point indices into the
    document content, as produced by the chunker.
    """

    type: str = "other"
    category: str = "other"
    start_offset: int = 0
    end_offset: int = 0


@dataclass
class Chunk:
    """A chunk of document content with its (possibly empty) embedding."""

    document_id: str
    ordinal: int
    content: str
    document_title: str = ""
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)
    embedding: list[float] = field(default_factory=list)

    @property
    def id(self) -> str:
        return chunk_id(self.document_id, self.ordinal)

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0


@dataclass
class Document:
    """A vendor-owned document as persisted by the document store."""

    id: str
    vendor_id: str
    title: str
    content: str = ""
    type: str = "other"  # faq, manual, policy, guide, other
    category: str = "other"
    metadata: dict[str, Any] = field(default_factory=dict)
    chunks: list[Chunk] = field(default_factory=list)
    last_indexed: Optional[datetime] = None  # None until the first index write
    updated_at: datetime = field(default_factory=utcnow)
    is_active: bool = True


@dataclass
class DocumentProjection:
    """The read-mostly view of a document held inside a vendor index."""

    id: str
    title: str
    type: str
    category: str
    content: str
    metadata: dict[str, Any]
    chunks: list[Chunk]
