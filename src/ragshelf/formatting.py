"""Plain-text rendering of index results for the CLI and MCP tools."""

from ragshelf.models import DocumentResult, IndexStats, RebuildResult

SNIPPET_LENGTH = 200


def format_results(query: str, results: list[DocumentResult]) -> str:
    """Render ranked documents with scores and a best-chunk snippet."""
    if not results:
        return f"No results found for: {query}"

    lines = []
    for i, r in enumerate(results, 1):
        # Truncate long text snippets
        text = r.content[:SNIPPET_LENGTH].replace("\n", " ")
        if len(r.content) > SNIPPET_LENGTH:
            text += "..."

        lines.append(f"{i}. [{r.relevance_score:.3f}] {r.title} ({r.type}/{r.category})")
        lines.append(f"   {text}")
        lines.append(f"   {len(r.matching_chunks)} matching chunk(s)")
        lines.append("")

    return "\n".join(lines)


def format_stats(vendor_key: str, stats: IndexStats) -> str:
    last_update = stats.last_update.isoformat() if stats.last_update else "never"
    return "\n".join(
        [
            f"Vendor: {vendor_key}",
            f"  Loaded: {'yes' if stats.is_loaded else 'no'}",
            f"  Documents: {stats.total_documents}",
            f"  Chunks: {stats.indexed_chunks}",
            f"  Memory: {stats.memory_usage}",
            f"  Last update: {last_update}",
        ]
    )


def format_rebuild(vendor_key: str, result: RebuildResult, stats: IndexStats) -> str:
    return (
        f"Rebuilt index for {vendor_key}: {result.documents_indexed} documents, "
        f"{result.chunks_indexed} chunks ({stats.memory_usage})"
    )
