"""Protocol for embedding model providers."""

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding model providers.

    Allows swapping between local models (sentence-transformers),
    the hashing development embedder, or API-based models. Output must be
    deterministic for identical input within one model version.
    """

    @property
    def dimension(self) -> int:
        """Return the embedding dimension."""
        ...

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        ...

    async def embed(self, text: str) -> Sequence[float]:
        """Generate the embedding vector for a single text."""
        ...
