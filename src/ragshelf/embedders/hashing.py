"""Deterministic hashing embedder for development and tests."""

from collections import Counter

import numpy as np


def string_hash(value: str) -> int:
    """32-bit rolling string hash (h * 31 + c), returned as an absolute value."""
    h = 0
    for char in value:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class HashingEmbedder:
    """Bag-of-words embedding with no model download.

    Lower-cased whitespace tokens longer than two characters are hashed
    into a fixed number of slots; each slot holds min(freq / 10, 1) of
    the last token hashed into it. Identical text always yields an
    identical vector, which keeps index tests reproducible.
    """

    DEFAULT_DIMENSION = 100

    def __init__(self, dimension: int = DEFAULT_DIMENSION):
        if dimension < 1:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return f"hashing-{self._dimension}"

    def vectorize(self, text: str) -> np.ndarray:
        counts = Counter(word for word in text.lower().split() if len(word) > 2)
        vector = np.zeros(self._dimension, dtype=np.float32)
        for word, freq in counts.items():
            vector[string_hash(word) % self._dimension] = min(freq / 10, 1.0)
        return vector

    async def embed(self, text: str) -> list[float]:
        return self.vectorize(text).tolist()
