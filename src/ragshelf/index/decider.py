"""Decide whether a persisted document's chunks can be trusted as-is."""

from datetime import timedelta

from ragshelf.models import Document

DEFAULT_TOLERANCE = timedelta(milliseconds=500)


def needs_reindex(document: Document, tolerance: timedelta = DEFAULT_TOLERANCE) -> bool:
    """Return True if the document must be re-chunked and re-embedded.

    A document is stale when it has no chunks, when any chunk lacks an
    embedding or belongs to another document id, or when it was updated
    more than ``tolerance`` after its last index write. Only metadata and
    vector presence are inspected.
    """
    if not document.chunks:
        return True

    if any(chunk.document_id != document.id for chunk in document.chunks):
        return True

    if any(not chunk.has_embedding for chunk in document.chunks):
        return True

    if document.last_indexed is not None and document.updated_at is not None:
        return document.updated_at - document.last_indexed > tolerance

    return False
