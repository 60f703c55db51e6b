"""Sentence-packing chunking strategy."""

import re
from typing import Iterator

from ragshelf.models import TextSpan

# A run of non-terminal characters followed by its terminal punctuation (if any).
_SENTENCE = re.compile(r"[^.!?]+[.!?]*")


def iter_sentences(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) offsets of each sentence, whitespace trimmed."""
    for match in _SENTENCE.finditer(text):
        raw = match.group()
        stripped = raw.strip()
        if not stripped.rstrip(".!?").strip():
            continue
        start = match.start() + len(raw) - len(raw.lstrip())
        yield start, start + len(stripped)


class SentenceChunker:
    """Default chunking: greedily pack whole sentences up to max_size.

    - Splits on terminal punctuation (. ! ?)
    - Appends sentences to a running buffer until the next one would push
      the buffer past max_size, then flushes and starts a new buffer
    - A single sentence longer than max_size becomes its own chunk

    Chunk content is the exact slice of the source text, so
    ``text[start_offset:end_offset] == content`` always holds.
    """

    DEFAULT_MAX_SIZE = 500

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size

    def chunk(self, text: str) -> list[TextSpan]:
        """Split text into sentence-aligned spans.

        Args:
            text: The text content to chunk

        Returns:
            Ordered list of TextSpan objects; empty for blank input
        """
        if not text or not text.strip():
            return []

        spans: list[tuple[int, int]] = []
        buffer_start: int | None = None
        buffer_end = 0

        for start, end in iter_sentences(text):
            if buffer_start is None:
                buffer_start = start
            elif end - buffer_start > self.max_size:
                spans.append((buffer_start, buffer_end))
                buffer_start = start
            buffer_end = end

        # Trailing buffer
        if buffer_start is not None:
            spans.append((buffer_start, buffer_end))

        return [
            TextSpan(
                content=text[start:end],
                ordinal=ordinal,
                start_offset=start,
                end_offset=end,
            )
            for ordinal, (start, end) in enumerate(spans)
        ]
