"""Multi-tenant semantic retrieval index."""

from ragshelf.index.decider import DEFAULT_TOLERANCE, needs_reindex
from ragshelf.index.manager import GLOBAL_VENDOR_KEY, IndexManager, RebuildMode
from ragshelf.index.ranking import cosine_similarity, rank
from ragshelf.index.registry import IndexRegistry
from ragshelf.index.vendor_index import VendorIndex, add_document

__all__ = [
    "IndexManager",
    "IndexRegistry",
    "RebuildMode",
    "VendorIndex",
    "add_document",
    "needs_reindex",
    "cosine_similarity",
    "rank",
    "DEFAULT_TOLERANCE",
    "GLOBAL_VENDOR_KEY",
]
