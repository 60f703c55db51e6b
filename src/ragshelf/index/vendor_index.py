"""Per-vendor in-memory index structure."""

import json
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Optional

import numpy as np

from ragshelf.errors import EmbeddingFailureError
from ragshelf.models import Chunk, Document, DocumentProjection, utcnow


@dataclass
class VendorIndex:
    """Chunks, embeddings and document projections for one vendor.

    ``embedding_store`` holds an entry only for chunks with a non-empty
    embedding. Mutate only through :func:`add_document`.
    """

    vendor_id: str
    chunk_store: dict[str, Chunk] = field(default_factory=dict)
    embedding_store: dict[str, np.ndarray] = field(default_factory=dict)
    documents: dict[str, DocumentProjection] = field(default_factory=dict)
    loaded: bool = False
    last_updated: Optional[datetime] = None

    @property
    def chunk_count(self) -> int:
        return len(self.chunk_store)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    def memory_usage(self) -> str:
        """Approximate size as the JSON-serialized chunk store, in KB."""
        payload = json.dumps([asdict(chunk) for chunk in self.chunk_store.values()])
        return f"{round(len(payload) / 1024)} KB"


def add_document(index: VendorIndex, document: Document) -> None:
    """Install a document's chunk set into the index, replacing any previous one.

    Chunks are keyed by the owning document, whatever document id they
    were persisted with. Chunks and vectors are staged locally first; the
    index is only touched once staging has succeeded, so a failure leaves
    it unchanged.
    """
    staged_chunks: dict[str, Chunk] = {}
    staged_embeddings: dict[str, np.ndarray] = {}

    for chunk in sorted(document.chunks, key=lambda c: c.ordinal):
        if chunk.document_id != document.id or chunk.document_title != document.title:
            chunk = replace(chunk, document_id=document.id, document_title=document.title)
        staged_chunks[chunk.id] = chunk
        if chunk.has_embedding:
            vector = np.asarray(chunk.embedding, dtype=np.float32)
            if vector.ndim != 1:
                raise EmbeddingFailureError(
                    f"Stored embedding for chunk {chunk.id} is not a flat vector",
                    document_id=document.id,
                )
            staged_embeddings[chunk.id] = vector

    projection = DocumentProjection(
        id=document.id,
        title=document.title,
        type=document.type,
        category=document.category,
        content=document.content,
        metadata=dict(document.metadata),
        chunks=list(staged_chunks.values()),
    )

    previous = index.documents.get(document.id)
    if previous is not None:
        for old in previous.chunks:
            index.chunk_store.pop(old.id, None)
            index.embedding_store.pop(old.id, None)

    index.chunk_store.update(staged_chunks)
    index.embedding_store.update(staged_embeddings)
    index.documents[document.id] = projection
    index.last_updated = utcnow()
