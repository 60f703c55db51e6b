"""
Index configuration settings.

Values are read from ``RAGSHELF_``-prefixed environment variables, e.g.
``RAGSHELF_CHUNK_SIZE=300`` or ``RAGSHELF_MAX_VENDORS=50``.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IndexSettings(BaseSettings):
    """Settings for chunking, ranking, reindexing and the vendor cache."""

    model_config = SettingsConfigDict(env_prefix="RAGSHELF_", case_sensitive=False)

    chunk_strategy: Literal["sentence", "window"] = Field(
        default="sentence",
        description="'sentence' packs whole sentences; 'window' uses fixed windows with overlap",
    )
    chunk_size: int = Field(default=500, ge=1, description="Maximum chunk length in characters")
    chunk_overlap: int = Field(
        default=0,
        ge=0,
        description="Trailing characters shared by consecutive windows (window strategy only)",
    )

    min_similarity: float = Field(default=0.1, description="Chunks scoring below this are dropped")
    search_limit: int = Field(default=3, ge=1, description="Documents returned per search")

    reindex_tolerance_ms: int = Field(
        default=500,
        ge=0,
        description="How far updated_at may trail last_indexed before a document is stale",
    )
    max_vendors: Optional[int] = Field(
        default=None,
        ge=1,
        description="LRU bound on cached vendor indices; None keeps every vendor",
    )

    embedding_backend: Literal["sentence-transformers", "hashing"] = Field(
        default="sentence-transformers",
        description="Embedding provider used by the CLI and MCP server",
    )
    embedding_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="sentence-transformers model name",
    )

    database_path: str = Field(default="ragshelf.db", description="SQLite document store path")
    log_level: str = Field(default="INFO", description="Log level for the CLI")


@lru_cache
def get_settings() -> IndexSettings:
    """Return the process-wide settings, loaded once from the environment."""
    return IndexSettings()
