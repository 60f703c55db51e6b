"""
Shared test fixtures.

Provides: sample vendor documents, an in-memory store, a counting embedder
built on the hashing embedder, and index settings isolated from the env.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from ragshelf.config import IndexSettings
from ragshelf.embedders import HashingEmbedder
from ragshelf.models import Chunk, ChunkMetadata, Document
from ragshelf.storage import InMemoryDocumentStore

SEEDED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


class CountingEmbedder:
    """HashingEmbedder wrapper that records every text it embeds.

    ``fail_on`` makes embed raise for any text containing that substring.
    """

    def __init__(self, fail_on: Optional[str] = None, dimension: int = 100):
        self._inner = HashingEmbedder(dimension)
        self.fail_on = fail_on
        self.texts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.texts)

    @property
    def dimension(self) -> int:
        return self._inner.dimension

    @property
    def model_name(self) -> str:
        return self._inner.model_name

    async def embed(self, text: str) -> list[float]:
        self.texts.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError("provider unavailable")
        return await self._inner.embed(text)


def make_document(
    doc_id: str,
    vendor_id: str,
    content: str,
    title: str = "Documento",
    **kwargs,
) -> Document:
    kwargs.setdefault("updated_at", SEEDED_AT)
    return Document(id=doc_id, vendor_id=vendor_id, title=title, content=content, **kwargs)


def make_chunk(
    document_id: str,
    ordinal: int,
    content: str,
    embedding: Optional[list[float]] = None,
    title: str = "Documento",
) -> Chunk:
    return Chunk(
        document_id=document_id,
        ordinal=ordinal,
        content=content,
        document_title=title,
        metadata=ChunkMetadata(start_offset=0, end_offset=len(content)),
        embedding=embedding or [],
    )


@pytest.fixture
def settings():
    """Settings with a small chunk size so multi-chunk documents are easy to build."""
    return IndexSettings(chunk_size=120, min_similarity=0.1, search_limit=3)


@pytest.fixture
def embedder():
    return CountingEmbedder()


@pytest.fixture
def warranty_document():
    return make_document(
        "doc-1",
        "vendor-1",
        "Ofrecemos garantía de 2 años para laptops y 1 año para accesorios.",
        title="Garantías de productos",
        type="faq",
        category="returns",
    )


@pytest.fixture
def shipping_document():
    return make_document(
        "doc-2",
        "vendor-2",
        "Realizamos envíos nacionales en 48 horas y envíos internacionales en 7 días.",
        title="Política de envíos",
        type="guide",
        category="shipping",
    )


@pytest.fixture
def store(warranty_document, shipping_document):
    return InMemoryDocumentStore([warranty_document, shipping_document])
