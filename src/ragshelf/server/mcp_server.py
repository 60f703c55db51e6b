"""FastMCP server exposing the vendor index to chat tooling."""

from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from ragshelf.config import IndexSettings, get_settings
from ragshelf.embedders import get_embedder
from ragshelf.formatting import format_rebuild, format_results, format_stats
from ragshelf.index import IndexManager
from ragshelf.protocols import EmbeddingProvider
from ragshelf.storage import SQLiteDocumentStore


def create_mcp_server(
    db_path: Path,
    settings: Optional[IndexSettings] = None,
    embedder: Optional[EmbeddingProvider] = None,
) -> FastMCP:
    """Create an MCP server over one document store.

    One IndexManager is shared by every tool call, so vendor indices stay
    loaded for the life of the process.

    Args:
        db_path: Path to the SQLite document store
        settings: Index settings; defaults to the environment
        embedder: Embedding provider; defaults to the configured backend

    Returns:
        Configured FastMCP server instance
    """
    settings = settings or get_settings()
    mcp = FastMCP(name="ragshelf")

    store = SQLiteDocumentStore(db_path)
    store.initialize()
    manager = IndexManager(
        store,
        embedder or get_embedder(settings.embedding_backend, settings.embedding_model),
        settings=settings,
    )

    @mcp.tool()
    async def search(query: str, vendor_id: Optional[str] = None, limit: int = 3) -> str:
        """Semantic search over one vendor's documents.

        Args:
            query: Natural language question from the customer
            vendor_id: Vendor whose documents are searched
            limit: Maximum number of documents to return (default: 3)

        Returns:
            Ranked documents with relevance scores and the best matching passage
        """
        results = await manager.search(query, vendor_id=vendor_id, limit=limit)
        return format_results(query, results)

    @mcp.tool()
    async def rebuild(vendor_id: Optional[str] = None) -> str:
        """Re-chunk and re-embed every active document for a vendor."""
        result = await manager.rebuild(vendor_id)
        return format_rebuild(manager.vendor_key(vendor_id), result, manager.get_stats(vendor_id))

    @mcp.tool()
    async def stats(vendor_id: Optional[str] = None) -> str:
        """Show document and chunk counts for a vendor's index."""
        await manager.ensure_loaded(vendor_id)
        return format_stats(manager.vendor_key(vendor_id), manager.get_stats(vendor_id))

    return mcp
