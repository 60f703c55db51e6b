"""Document store implementations."""

from ragshelf.storage.memory import InMemoryDocumentStore
from ragshelf.storage.store import SQLiteDocumentStore

__all__ = ["InMemoryDocumentStore", "SQLiteDocumentStore"]
