"""Tests for IndexManager loading, persistence reuse, rebuilds and search."""

import asyncio
from datetime import timedelta

import pytest

from conftest import SEEDED_AT, CountingEmbedder, make_chunk, make_document
from ragshelf.errors import EmbeddingFailureError, StoreUnavailableError
from ragshelf.index import GLOBAL_VENDOR_KEY, IndexManager, IndexRegistry, RebuildMode
from ragshelf.models import IndexStats
from ragshelf.storage import InMemoryDocumentStore


class FailingStore(InMemoryDocumentStore):
    """Store whose reads or writes raise like an unreachable database."""

    def __init__(self, documents=(), fail_reads=False, fail_writes=False):
        super().__init__(documents)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    async def find_all(self, **filters):
        if self.fail_reads:
            raise ConnectionError("database unreachable")
        return await super().find_all(**filters)

    async def update(self, document_id, **fields):
        if self.fail_writes:
            raise ConnectionError("database unreachable")
        return await super().update(document_id, **fields)


class MalformedEmbedder(CountingEmbedder):
    async def embed(self, text):
        await super().embed(text)
        return [float("nan")] * 4


@pytest.mark.asyncio
async def test_repeated_searches_reuse_loaded_index(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings, default_vendor_id="vendor-1")

    first = await manager.search("¿Cuál es la garantía de las laptops?", vendor_id="vendor-1", limit=3)
    assert len(first) > 0
    assert store.find_all_calls == 1
    embeddings_after_first = embedder.calls

    second = await manager.search("¿Ofrecen garantía para accesorios?", vendor_id="vendor-1", limit=3)
    assert len(second) > 0
    assert store.find_all_calls == 1
    assert embedder.calls == embeddings_after_first + 1


@pytest.mark.asyncio
async def test_persisted_chunks_are_not_re_embedded(store, settings):
    first_embedder = CountingEmbedder()
    first = IndexManager(store, first_embedder, settings=settings)
    await first.search("envíos nacionales", vendor_id="vendor-2", limit=2)
    assert len(first.registry.get("vendor-2").embedding_store) > 0

    persisted = store.get("doc-2")
    assert persisted.last_indexed is not None
    assert all(chunk.has_embedding for chunk in persisted.chunks)

    second_embedder = CountingEmbedder()
    second = IndexManager(store, second_embedder, settings=settings)
    results = await second.search("envíos internacionales", vendor_id="vendor-2", limit=2)

    assert len(results) > 0
    assert store.find_all_calls == 2
    assert second_embedder.texts == ["envíos internacionales"]


@pytest.mark.asyncio
async def test_search_result_shape(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    results = await manager.search("garantía para laptops", vendor_id="vendor-1")

    assert len(results) == 1
    result = results[0]
    assert result.document_id == "doc-1"
    assert result.title == "Garantías de productos"
    assert result.type == "faq"
    assert result.category == "returns"
    assert 0.1 <= result.relevance_score <= 1.0
    assert result.matching_chunks[0].chunk.id == "doc-1_0"


@pytest.mark.asyncio
async def test_vendors_are_isolated(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    await manager.search("garantía", vendor_id="vendor-1")

    index = manager.registry.get("vendor-1")
    assert set(index.documents) == {"doc-1"}
    assert "vendor-2" not in manager.registry


@pytest.mark.asyncio
async def test_vendor_without_documents_skips_query_embedding(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    results = await manager.search("cualquier cosa", vendor_id="vendor-empty")

    assert results == []
    assert embedder.calls == 0
    assert manager.get_stats("vendor-empty").is_loaded


@pytest.mark.asyncio
async def test_inactive_documents_are_not_indexed(embedder, settings):
    store = InMemoryDocumentStore(
        [make_document("doc-9", "vendor-1", "Documento archivado de garantía.", is_active=False)]
    )
    manager = IndexManager(store, embedder, settings=settings)

    assert await manager.search("garantía", vendor_id="vendor-1") == []
    assert embedder.calls == 0


@pytest.mark.asyncio
async def test_only_stale_documents_are_re_embedded(embedder, settings):
    store = InMemoryDocumentStore(
        [
            make_document("doc-a", "vendor-1", "Garantía de laptops por dos años."),
            make_document("doc-b", "vendor-1", "Envíos gratis en compras grandes."),
        ]
    )
    await IndexManager(store, CountingEmbedder(), settings=settings).rebuild("vendor-1")

    # doc-b changes after it was indexed
    changed = store.get("doc-b")
    changed.content = "Envíos gratis desde cincuenta dólares."
    changed.updated_at = changed.last_indexed + timedelta(seconds=5)
    store.add(changed)

    manager = IndexManager(store, embedder, settings=settings)
    index = await manager.ensure_loaded("vendor-1")

    assert embedder.texts == ["Envíos gratis desde cincuenta dólares."]
    assert index.chunk_store["doc-b_0"].content == "Envíos gratis desde cincuenta dólares."
    assert index.chunk_count == len(index.embedding_store) == 2


@pytest.mark.asyncio
async def test_rebuild_reports_counts_and_is_idempotent(embedder, settings):
    content = " ".join(f"Frase número {i} sobre políticas de devolución." for i in range(8))
    store = InMemoryDocumentStore(
        [
            make_document("doc-a", "vendor-1", content),
            make_document("doc-b", "vendor-1", "Atención al cliente de lunes a viernes."),
        ]
    )
    manager = IndexManager(store, embedder, settings=settings)

    first = await manager.rebuild("vendor-1")
    first_ids = set(manager.registry.get("vendor-1").chunk_store)
    second = await manager.rebuild("vendor-1")
    second_ids = set(manager.registry.get("vendor-1").chunk_store)

    assert first.documents_indexed == 2
    assert first.chunks_indexed > 2
    assert first == second
    assert first_ids == second_ids


@pytest.mark.asyncio
async def test_rebuild_re_embeds_even_when_fresh(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    await manager.ensure_loaded("vendor-1")
    calls_after_load = embedder.calls

    await manager.rebuild("vendor-1")

    assert embedder.calls == calls_after_load * 2
    assert store.find_all_calls == 2


@pytest.mark.asyncio
async def test_full_rebuild_swaps_in_a_new_index(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    old = await manager.ensure_loaded("vendor-1")
    old_chunks = dict(old.chunk_store)

    new = await manager.ensure_loaded("vendor-1", mode=RebuildMode.FULL)

    assert new is not old
    assert manager.registry.get("vendor-1") is new
    assert old.chunk_store == old_chunks


@pytest.mark.asyncio
async def test_search_during_rebuild_sees_old_index(store, settings):
    gate = asyncio.Event()

    class SlowEmbedder(CountingEmbedder):
        async def embed(self, text):
            if gate.is_set():
                await asyncio.sleep(0.05)
            return await super().embed(text)

    embedder = SlowEmbedder()
    manager = IndexManager(store, embedder, settings=settings)
    old = await manager.ensure_loaded("vendor-1")

    gate.set()
    rebuild = asyncio.create_task(manager.rebuild("vendor-1"))
    await asyncio.sleep(0)
    results = await manager.search("garantía laptops", vendor_id="vendor-1")

    assert manager.registry.get("vendor-1") is old or rebuild.done()
    assert [r.document_id for r in results] == ["doc-1"]
    await rebuild
    assert manager.registry.get("vendor-1") is not old


@pytest.mark.asyncio
async def test_concurrent_first_loads_fetch_once(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    first, second = await asyncio.gather(
        manager.ensure_loaded("vendor-1"), manager.ensure_loaded("vendor-1")
    )

    assert first is second
    assert store.find_all_calls == 1
    assert manager._locks == {}


@pytest.mark.asyncio
async def test_embedding_failure_fails_the_load(settings):
    store = InMemoryDocumentStore(
        [
            make_document("doc-a", "vendor-1", "Garantía de laptops."),
            make_document("doc-b", "vendor-1", "Texto que rompe el proveedor."),
        ]
    )
    manager = IndexManager(store, CountingEmbedder(fail_on="rompe"), settings=settings)

    with pytest.raises(EmbeddingFailureError) as excinfo:
        await manager.search("garantía", vendor_id="vendor-1")

    assert excinfo.value.details["document_id"] == "doc-b"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert "vendor-1" not in manager.registry
    assert store.get("doc-b").last_indexed is None


@pytest.mark.asyncio
async def test_embedding_failure_keeps_previous_index(store, settings):
    embedder = CountingEmbedder()
    manager = IndexManager(store, embedder, settings=settings)
    old = await manager.ensure_loaded("vendor-1")

    embedder.fail_on = "garantía"
    with pytest.raises(EmbeddingFailureError):
        await manager.rebuild("vendor-1")

    assert manager.registry.get("vendor-1") is old


@pytest.mark.asyncio
async def test_malformed_vector_is_an_embedding_failure(store, settings):
    manager = IndexManager(store, MalformedEmbedder(), settings=settings)
    with pytest.raises(EmbeddingFailureError):
        await manager.ensure_loaded("vendor-1")


@pytest.mark.asyncio
async def test_store_read_failure(warranty_document, embedder, settings):
    store = FailingStore([warranty_document], fail_reads=True)
    manager = IndexManager(store, embedder, settings=settings)

    with pytest.raises(StoreUnavailableError) as excinfo:
        await manager.search("garantía", vendor_id="vendor-1")

    assert excinfo.value.details["operation"] == "find_all"
    assert "vendor-1" not in manager.registry


@pytest.mark.asyncio
async def test_store_write_failure(warranty_document, embedder, settings):
    store = FailingStore([warranty_document], fail_writes=True)
    manager = IndexManager(store, embedder, settings=settings)

    with pytest.raises(StoreUnavailableError) as excinfo:
        await manager.rebuild("vendor-1")

    assert excinfo.value.details["operation"] == "update"
    assert "vendor-1" not in manager.registry


@pytest.mark.asyncio
async def test_document_removed_during_indexing_is_skipped(warranty_document, embedder, settings):
    class VanishingStore(InMemoryDocumentStore):
        async def update(self, document_id, **fields):
            return None

    manager = IndexManager(VanishingStore([warranty_document]), embedder, settings=settings)
    index = await manager.ensure_loaded("vendor-1")

    assert index.loaded
    assert index.document_count == 0


@pytest.mark.asyncio
async def test_default_vendor_key(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings, default_vendor_id="vendor-2")
    index = await manager.ensure_loaded()

    assert index.vendor_id == "vendor-2"
    assert set(index.documents) == {"doc-2"}

    unscoped = IndexManager(store, CountingEmbedder(), settings=settings)
    assert unscoped.vendor_key() == GLOBAL_VENDOR_KEY
    everything = await unscoped.ensure_loaded()
    assert set(everything.documents) == {"doc-1", "doc-2"}


@pytest.mark.asyncio
async def test_stats_for_loaded_vendor(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    await manager.ensure_loaded("vendor-1")
    stats = manager.get_stats("vendor-1")

    assert stats.total_documents == 1
    assert stats.indexed_chunks == 1
    assert stats.is_loaded
    assert stats.last_update is not None
    assert stats.memory_usage.endswith(" KB")


def test_stats_for_unknown_vendor(store, embedder, settings):
    manager = IndexManager(store, embedder, settings=settings)
    assert manager.get_stats("never-seen") == IndexStats()
    assert manager.get_stats("never-seen").memory_usage == "0 KB"


@pytest.mark.asyncio
async def test_separate_registries_are_isolated(store, settings):
    shared = IndexRegistry()
    first = IndexManager(store, CountingEmbedder(), settings=settings, registry=shared)
    second = IndexManager(store, CountingEmbedder(), settings=settings, registry=shared)
    isolated = IndexManager(store, CountingEmbedder(), settings=settings)

    await first.ensure_loaded("vendor-1")

    assert await second.ensure_loaded("vendor-1") is shared.get("vendor-1")
    assert store.find_all_calls == 1
    assert "vendor-1" not in isolated.registry


@pytest.mark.asyncio
async def test_max_vendors_evicts_least_recently_used(store, embedder, settings):
    bounded = settings.model_copy(update={"max_vendors": 1})
    manager = IndexManager(store, embedder, settings=bounded)
    await manager.ensure_loaded("vendor-1")
    await manager.ensure_loaded("vendor-2")

    assert manager.registry.vendors() == ["vendor-2"]
    assert not manager.get_stats("vendor-1").is_loaded
    assert manager._locks == {}


@pytest.mark.asyncio
async def test_stale_after_store_update_timestamp(store, embedder, settings):
    """A store that bumps updated_at on write stays fresh within tolerance."""
    manager = IndexManager(store, embedder, settings=settings)
    await manager.ensure_loaded("vendor-1")

    persisted = store.get("doc-1")
    await store.update(
        "doc-1", updated_at=persisted.last_indexed + timedelta(milliseconds=100)
    )

    fresh = IndexManager(store, CountingEmbedder(), settings=settings)
    await fresh.ensure_loaded("vendor-1")
    assert fresh.embedder.calls == 0


@pytest.mark.asyncio
async def test_chunks_persisted_under_another_document_are_reindexed(embedder, settings):
    copied = make_document(
        "doc-b",
        "vendor-1",
        "Garantía de dos años para laptops",
        chunks=[make_chunk("doc-a", 0, "Garantía de dos años para laptops", [1.0] * 100)],
        last_indexed=SEEDED_AT,
    )
    store = InMemoryDocumentStore([copied])
    manager = IndexManager(store, embedder, settings=settings)

    results = await manager.search("garantía laptops", vendor_id="vendor-1")

    assert [r.document_id for r in results] == ["doc-b"]
    assert set(manager.registry.get("vendor-1").chunk_store) == {"doc-b_0"}
    assert [c.document_id for c in store.get("doc-b").chunks] == ["doc-b"]
