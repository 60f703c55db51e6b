"""CLI entry point for ragshelf."""

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from ragshelf.config import get_settings
from ragshelf.embedders import get_embedder
from ragshelf.errors import RagShelfError
from ragshelf.formatting import format_rebuild, format_results, format_stats
from ragshelf.index import IndexManager
from ragshelf.models import Document
from ragshelf.storage import SQLiteDocumentStore

logger = logging.getLogger(__name__)


def build_manager(db: str, backend: Optional[str] = None) -> IndexManager:
    """Wire a SQLite store and the configured embedder into an IndexManager."""
    settings = get_settings()
    store = SQLiteDocumentStore(db)
    store.initialize()
    embedder = get_embedder(backend or settings.embedding_backend, settings.embedding_model)
    return IndexManager(store, embedder, settings=settings)


def add(
    db: str,
    vendor: str,
    title: str,
    file: str,
    doc_type: str = "other",
    category: str = "other",
) -> str:
    """Add a text file to the store as a vendor document.

    The document is indexed lazily on the next search or rebuild.

    Returns:
        The new document id
    """
    file_path = Path(file)
    if not file_path.exists():
        logger.error(f"File not found: {file}")
        sys.exit(1)

    store = SQLiteDocumentStore(db)
    store.initialize()
    document_id = uuid.uuid4().hex
    store.add_document(
        Document(
            id=document_id,
            vendor_id=vendor,
            title=title,
            content=file_path.read_text(encoding="utf-8"),
            type=doc_type,
            category=category,
            metadata={"file_name": file_path.name},
        )
    )
    logger.info(f"Added {file_path.name} as {document_id} for vendor {vendor}")
    return document_id


def rebuild(db: str, vendor: Optional[str] = None, backend: Optional[str] = None) -> None:
    """Force a full reindex of every active document for a vendor."""
    manager = build_manager(db, backend)
    logger.info(f"Rebuilding index for {manager.vendor_key(vendor)}...")
    result = asyncio.run(manager.rebuild(vendor))
    print(format_rebuild(manager.vendor_key(vendor), result, manager.get_stats(vendor)))


def search(
    db: str,
    query: str,
    vendor: Optional[str] = None,
    limit: Optional[int] = None,
    min_similarity: Optional[float] = None,
    backend: Optional[str] = None,
) -> None:
    """Search one vendor's documents and print ranked results."""
    manager = build_manager(db, backend)
    results = asyncio.run(
        manager.search(query, vendor_id=vendor, limit=limit, min_similarity=min_similarity)
    )
    print(format_results(query, results))


def stats(db: str, vendor: Optional[str] = None, backend: Optional[str] = None) -> None:
    """Load a vendor's index and print its statistics."""
    manager = build_manager(db, backend)
    asyncio.run(manager.ensure_loaded(vendor))
    print(format_stats(manager.vendor_key(vendor), manager.get_stats(vendor)))


def serve(db: str, transport: str = "stdio", backend: Optional[str] = None) -> None:
    """Start MCP server over a document store.

    Args:
        db: Path to the SQLite document store
        transport: Transport protocol (stdio or sse)
        backend: Embedding backend override
    """
    # Import here to avoid loading MCP unless needed
    from ragshelf.server import create_mcp_server

    from typing import Literal, cast

    settings = get_settings()
    embedder = get_embedder(backend or settings.embedding_backend, settings.embedding_model)
    logger.info(f"Serving {db} via {transport}")
    mcp = create_mcp_server(Path(db), settings=settings, embedder=embedder)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    parser = argparse.ArgumentParser(
        prog="ragshelf",
        description="ragshelf - per-vendor semantic search over store documents",
    )
    parser.add_argument(
        "--backend",
        choices=["sentence-transformers", "hashing"],
        default=None,
        help=f"Embedding backend (default: {settings.embedding_backend})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # add command
    add_parser = subparsers.add_parser("add", help="Add a text file as a vendor document")
    add_parser.add_argument("db", help="Path to the document store")
    add_parser.add_argument("file", help="Text or markdown file to add")
    add_parser.add_argument("--vendor", required=True, help="Owning vendor id")
    add_parser.add_argument("--title", required=True, help="Document title")
    add_parser.add_argument("--type", default="other", help="faq, manual, policy, guide, other")
    add_parser.add_argument("--category", default="other", help="Document category")

    # rebuild command
    rebuild_parser = subparsers.add_parser(
        "rebuild",
        help="Re-chunk and re-embed every active document for a vendor",
    )
    rebuild_parser.add_argument("db", help="Path to the document store")
    rebuild_parser.add_argument("--vendor", default=None, help="Vendor id (default: all)")

    # search command
    search_parser = subparsers.add_parser("search", help="Search a vendor's documents")
    search_parser.add_argument("db", help="Path to the document store")
    search_parser.add_argument("query", help="Natural language query")
    search_parser.add_argument("--vendor", default=None, help="Vendor id (default: all)")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help=f"Maximum documents (default: {settings.search_limit})",
    )
    search_parser.add_argument(
        "--min-similarity",
        type=float,
        default=None,
        help=f"Minimum chunk similarity (default: {settings.min_similarity})",
    )

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show index statistics for a vendor")
    stats_parser.add_argument("db", help="Path to the document store")
    stats_parser.add_argument("--vendor", default=None, help="Vendor id (default: all)")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start MCP server for a document store")
    serve_parser.add_argument("db", help="Path to the document store")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    args = parser.parse_args(argv)

    try:
        if args.command == "add":
            print(add(args.db, args.vendor, args.title, args.file, args.type, args.category))
        elif args.command == "rebuild":
            rebuild(args.db, args.vendor, args.backend)
        elif args.command == "search":
            search(args.db, args.query, args.vendor, args.limit, args.min_similarity, args.backend)
        elif args.command == "stats":
            stats(args.db, args.vendor, args.backend)
        elif args.command == "serve":
            serve(args.db, args.transport, args.backend)
    except RagShelfError as exc:
        logger.error(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
