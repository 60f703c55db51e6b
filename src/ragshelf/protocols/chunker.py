"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable

from ragshelf.models import TextSpan


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for text chunking strategies.

    Implementations must be deterministic: the same text always yields
    the same ordinals and offsets.
    """

    def chunk(self, text: str) -> list[TextSpan]:
        """Split text into ordered spans with source offsets."""
        ...
