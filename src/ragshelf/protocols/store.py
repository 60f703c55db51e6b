"""Protocol for the external document store."""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from ragshelf.models import Chunk, Document


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for the store that owns vendor documents.

    The index only reads documents and writes back chunk, embedding and
    timestamp fields. It never creates or deletes documents.
    """

    async def find_all(
        self,
        *,
        is_active: Optional[bool] = None,
        vendor_id: Optional[str] = None,
    ) -> list[Document]:
        """Return documents matching the given filters (None means any)."""
        ...

    async def update(
        self,
        document_id: str,
        *,
        chunks: Optional[list[Chunk]] = None,
        last_indexed: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Document]:
        """Write back index fields. Returns None if the document is gone."""
        ...
