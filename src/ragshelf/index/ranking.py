"""Cosine similarity ranking with per-document deduplication."""

from typing import Sequence

import numpy as np

from ragshelf.errors import DimensionMismatchError
from ragshelf.index.vendor_index import VendorIndex
from ragshelf.models import ChunkHit, DocumentResult

DEFAULT_MIN_SIMILARITY = 0.1
DEFAULT_LIMIT = 3


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Compute cosine similarity between two vectors.

    A zero-norm vector scores 0.0 against anything.
    """
    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    if vec_a.shape != vec_b.shape:
        raise DimensionMismatchError(expected=vec_a.size, actual=vec_b.size)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def rank(
    query_embedding: Sequence[float] | np.ndarray,
    index: VendorIndex,
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
    limit: int = DEFAULT_LIMIT,
) -> list[DocumentResult]:
    """Score every stored embedding and return the top documents.

    Chunks below ``min_similarity`` are dropped. Remaining hits collapse
    into one result per document, scored by its best chunk and carrying
    all of its matching chunks. Equal scores keep chunk insertion order.
    """
    query = np.asarray(query_embedding, dtype=np.float32)

    hits: list[ChunkHit] = []
    for chunk_id, vector in index.embedding_store.items():
        if vector.shape != query.shape:
            raise DimensionMismatchError(
                expected=query.size, actual=vector.size, chunk_id=chunk_id
            )
        similarity = cosine_similarity(query, vector)
        if similarity < min_similarity:
            continue
        hits.append(ChunkHit(chunk=index.chunk_store[chunk_id], similarity=similarity))

    results: dict[str, DocumentResult] = {}
    for hit in hits:
        document_id = hit.chunk.document_id
        result = results.get(document_id)
        if result is None:
            projection = index.documents[document_id]
            results[document_id] = DocumentResult(
                document_id=document_id,
                title=projection.title,
                type=projection.type,
                category=projection.category,
                content=hit.chunk.content,
                relevance_score=hit.similarity,
                matching_chunks=[hit],
            )
            continue

        result.matching_chunks.append(hit)
        if hit.similarity > result.relevance_score:
            result.relevance_score = hit.similarity
            result.content = hit.chunk.content

    # sorted() is stable, so ties keep first-hit order
    ranked = sorted(results.values(), key=lambda r: r.relevance_score, reverse=True)
    return ranked[:limit]
