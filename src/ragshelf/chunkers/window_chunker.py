"""Fixed-size window chunking with overlap."""

from ragshelf.models import TextSpan


class WindowChunker:
    """Hard-split text into windows of max_size characters.

    Consecutive windows share ``overlap`` trailing characters. Overlap is
    clamped to [0, max_size - 1] so every step advances. Windows that are
    entirely whitespace are skipped without consuming an ordinal.
    """

    def __init__(self, max_size: int, overlap: int = 0):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.overlap = min(max(overlap, 0), max_size - 1)

    def chunk(self, text: str) -> list[TextSpan]:
        if not text or not text.strip():
            return []

        step = self.max_size - self.overlap
        spans: list[TextSpan] = []
        for start in range(0, len(text), step):
            end = min(start + self.max_size, len(text))
            window = text[start:end]
            if window.strip():
                spans.append(
                    TextSpan(
                        content=window,
                        ordinal=len(spans),
                        start_offset=start,
                        end_offset=end,
                    )
                )
            if end == len(text):
                break
        return spans
