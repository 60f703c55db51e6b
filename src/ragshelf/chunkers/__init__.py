"""Text chunking strategies."""

from ragshelf.chunkers.sentence_chunker import SentenceChunker, iter_sentences
from ragshelf.chunkers.window_chunker import WindowChunker
from ragshelf.protocols import ChunkingStrategy


def get_chunker(strategy: str, max_size: int, overlap: int = 0) -> ChunkingStrategy:
    """Build the chunking strategy named by configuration.

    Args:
        strategy: 'sentence' or 'window'
        max_size: Maximum chunk length in characters
        overlap: Window overlap; ignored by the sentence strategy

    Returns:
        A ChunkingStrategy instance
    """
    if strategy == "sentence":
        return SentenceChunker(max_size)
    if strategy == "window":
        return WindowChunker(max_size, overlap)
    raise ValueError(f"Unknown chunk strategy: {strategy}")


__all__ = ["SentenceChunker", "WindowChunker", "get_chunker", "iter_sentences"]
