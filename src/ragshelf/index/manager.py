"""Vendor index orchestration: lazy loading, rebuilds and search.

Each vendor key moves from absent to loading to ready. A ready index is
returned as-is on later calls, with no store reads and no embedding
calls. Loading pulls the vendor's active documents, re-chunks and
re-embeds only the stale ones, writes them back to the store, and merges
everything into the index. A full rebuild builds a brand-new index and
swaps it in only when complete, so in-flight searches keep using the old
one.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import timedelta
from enum import Enum
from typing import Optional

import numpy as np

from ragshelf.chunkers import get_chunker
from ragshelf.config import IndexSettings, get_settings
from ragshelf.errors import EmbeddingFailureError, RagShelfError, StoreUnavailableError
from ragshelf.index.decider import needs_reindex
from ragshelf.index.ranking import rank
from ragshelf.index.registry import IndexRegistry
from ragshelf.index.vendor_index import VendorIndex, add_document
from ragshelf.models import (
    Chunk,
    ChunkMetadata,
    Document,
    DocumentResult,
    IndexStats,
    RebuildResult,
    utcnow,
)
from ragshelf.protocols import ChunkingStrategy, DocumentStore, EmbeddingProvider

logger = logging.getLogger(__name__)

GLOBAL_VENDOR_KEY = "global"


class RebuildMode(Enum):
    """How a load treats existing state.

    INCREMENTAL reuses a ready index, otherwise re-embeds only stale
    documents and builds the index from those plus the reused ones.
    FULL re-embeds every document. Both build a new index and swap it in.
    """

    INCREMENTAL = "incremental"
    FULL = "full"


class IndexManager:
    """Lazily built, per-vendor semantic index over a document store."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        chunker: Optional[ChunkingStrategy] = None,
        settings: Optional[IndexSettings] = None,
        registry: Optional[IndexRegistry] = None,
        default_vendor_id: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.embedder = embedder
        self.chunker = chunker or get_chunker(
            self.settings.chunk_strategy,
            self.settings.chunk_size,
            self.settings.chunk_overlap,
        )
        self.registry = registry or IndexRegistry(max_vendors=self.settings.max_vendors)
        self.default_vendor_id = default_vendor_id
        self._tolerance = timedelta(milliseconds=self.settings.reindex_tolerance_ms)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def vendor_key(self, vendor_id: Optional[str] = None) -> str:
        return vendor_id or self.default_vendor_id or GLOBAL_VENDOR_KEY

    async def ensure_loaded(
        self,
        vendor_id: Optional[str] = None,
        mode: RebuildMode = RebuildMode.INCREMENTAL,
    ) -> VendorIndex:
        """Return a ready index for the vendor, loading or rebuilding it as needed.

        Args:
            vendor_id: Vendor key; falls back to the default vendor
            mode: INCREMENTAL (reuse if ready) or FULL (always rebuild)

        Returns:
            The vendor's ready VendorIndex

        Raises:
            StoreUnavailableError: The document store failed
            EmbeddingFailureError: A document could not be embedded
        """
        key = self.vendor_key(vendor_id)

        if mode is RebuildMode.INCREMENTAL:
            index = self.registry.get(key)
            if index is not None and index.loaded:
                return index

        async with self._vendor_lock(key):
            # Another task may have finished loading while we waited
            if mode is RebuildMode.INCREMENTAL:
                index = self.registry.get(key)
                if index is not None and index.loaded:
                    return index

            try:
                return await self._load(key, vendor_id or self.default_vendor_id, mode)
            except RagShelfError as exc:
                logger.error(f"Failed to {mode.value}-load index for vendor {key}: {exc}")
                raise

    async def search(
        self,
        query: str,
        vendor_id: Optional[str] = None,
        limit: Optional[int] = None,
        min_similarity: Optional[float] = None,
    ) -> list[DocumentResult]:
        """Find the documents most relevant to a query within one vendor.

        Returns an empty list without embedding the query when the vendor
        has no embedded chunks.
        """
        index = await self.ensure_loaded(vendor_id)

        if not index.embedding_store:
            logger.info(f"No embeddings for vendor {index.vendor_id}; returning empty results")
            return []

        query_embedding = await self._embed(query)
        results = rank(
            query_embedding,
            index,
            min_similarity=(
                self.settings.min_similarity if min_similarity is None else min_similarity
            ),
            limit=self.settings.search_limit if limit is None else limit,
        )
        logger.debug(
            f"Search for vendor {index.vendor_id} returned {len(results)} documents"
        )
        return results

    async def rebuild(self, vendor_id: Optional[str] = None) -> RebuildResult:
        """Re-chunk and re-embed every active document, replacing the cached index."""
        index = await self.ensure_loaded(vendor_id, mode=RebuildMode.FULL)
        return RebuildResult(
            documents_indexed=index.document_count,
            chunks_indexed=index.chunk_count,
        )

    def get_stats(self, vendor_id: Optional[str] = None) -> IndexStats:
        """Summarize the vendor's index; zeroed if none has been built."""
        index = self.registry.peek(self.vendor_key(vendor_id))
        if index is None:
            return IndexStats()
        return IndexStats(
            total_documents=index.document_count,
            indexed_chunks=index.chunk_count,
            memory_usage=index.memory_usage(),
            last_update=index.last_updated,
            is_loaded=index.loaded,
        )

    @asynccontextmanager
    async def _vendor_lock(self, key: str):
        """Hold the vendor's load lock; it is dropped once no task uses it."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _load(
        self, key: str, filter_vendor: Optional[str], mode: RebuildMode
    ) -> VendorIndex:
        documents = await self._fetch_documents(filter_vendor)

        if mode is RebuildMode.FULL:
            stale_ids = {doc.id for doc in documents}
        else:
            stale_ids = {
                doc.id for doc in documents if needs_reindex(doc, self._tolerance)
            }

        rebuilt: dict[str, Optional[Document]] = {}
        for doc in documents:
            if doc.id in stale_ids:
                rebuilt[doc.id] = await self._reindex_document(doc)

        index = VendorIndex(vendor_id=key)
        for doc in documents:
            current = rebuilt[doc.id] if doc.id in rebuilt else doc
            if current is not None:
                add_document(index, current)

        index.loaded = True
        index.last_updated = utcnow()
        self.registry.install(index)

        logger.info(
            f"Loaded index for vendor {key} ({mode.value}): "
            f"{index.document_count} documents, {index.chunk_count} chunks, "
            f"{len(documents) - len(stale_ids)} reused, {len(stale_ids)} re-embedded"
        )
        return index

    async def _fetch_documents(self, vendor_id: Optional[str]) -> list[Document]:
        try:
            return await self.store.find_all(is_active=True, vendor_id=vendor_id)
        except RagShelfError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(
                f"Could not read documents: {exc}",
                operation="find_all",
                details={"vendor_id": vendor_id},
            ) from exc

    async def _reindex_document(self, doc: Document) -> Optional[Document]:
        """Chunk, embed and persist one document; None if it left the store."""
        chunks = []
        for span in self.chunker.chunk(doc.content):
            chunks.append(
                Chunk(
                    document_id=doc.id,
                    ordinal=span.ordinal,
                    content=span.content,
                    document_title=doc.title,
                    metadata=ChunkMetadata(
                        type=doc.type,
                        category=doc.category,
                        start_offset=span.start_offset,
                        end_offset=span.end_offset,
                    ),
                    embedding=await self._embed(span.content, document_id=doc.id),
                )
            )

        indexed_at = utcnow()
        try:
            stored = await self.store.update(doc.id, chunks=chunks, last_indexed=indexed_at)
        except RagShelfError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(
                f"Could not write index data for document {doc.id}: {exc}",
                operation="update",
                details={"document_id": doc.id},
            ) from exc

        if stored is None:
            logger.warning(f"Document {doc.id} disappeared from the store during indexing")
            return None

        logger.debug(f"Reindexed document {doc.id} into {len(chunks)} chunks")
        return replace(doc, chunks=chunks, last_indexed=indexed_at)

    async def _embed(self, text: str, document_id: Optional[str] = None) -> list[float]:
        try:
            vector = np.asarray(await self.embedder.embed(text), dtype=np.float32)
        except RagShelfError:
            raise
        except Exception as exc:
            raise EmbeddingFailureError(
                f"Embedding provider failed: {exc}", document_id=document_id
            ) from exc

        if vector.ndim != 1 or vector.size == 0 or not np.all(np.isfinite(vector)):
            raise EmbeddingFailureError(
                f"Embedding provider returned a malformed vector of shape {vector.shape}",
                document_id=document_id,
            )
        return vector.tolist()
