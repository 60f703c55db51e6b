"""ragshelf - per-vendor semantic retrieval over a document store."""

from ragshelf.index import IndexManager, IndexRegistry, RebuildMode

__version__ = "0.1.0"

__all__ = ["IndexManager", "IndexRegistry", "RebuildMode", "__version__"]
