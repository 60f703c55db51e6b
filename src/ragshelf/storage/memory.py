"""In-memory document store."""

import copy
from datetime import datetime
from typing import Iterable, Optional

from ragshelf.models import Chunk, Document


class InMemoryDocumentStore:
    """Dict-backed DocumentStore that copies documents in and out.

    Callers never share mutable state with the store, mirroring a real
    database round-trip. ``find_all_calls`` and ``update_calls`` count
    protocol calls so index I/O can be observed.
    """

    def __init__(self, documents: Iterable[Document] = ()):
        self._documents: dict[str, Document] = {}
        self.find_all_calls = 0
        self.update_calls = 0
        for doc in documents:
            self.add(doc)

    def add(self, doc: Document) -> None:
        """Insert or replace a document."""
        self._documents[doc.id] = copy.deepcopy(doc)

    def get(self, document_id: str) -> Optional[Document]:
        doc = self._documents.get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find_all(
        self,
        *,
        is_active: Optional[bool] = None,
        vendor_id: Optional[str] = None,
    ) -> list[Document]:
        self.find_all_calls += 1
        return [
            copy.deepcopy(doc)
            for doc in self._documents.values()
            if (is_active is None or doc.is_active == is_active)
            and (vendor_id is None or doc.vendor_id == vendor_id)
        ]

    async def update(
        self,
        document_id: str,
        *,
        chunks: Optional[list[Chunk]] = None,
        last_indexed: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Document]:
        self.update_calls += 1
        doc = self._documents.get(document_id)
        if doc is None:
            return None
        if chunks is not None:
            doc.chunks = copy.deepcopy(chunks)
        if last_indexed is not None:
            doc.last_indexed = last_indexed
        # updated_at is kept unless set explicitly
        if updated_at is not None:
            doc.updated_at = updated_at
        return copy.deepcopy(doc)
