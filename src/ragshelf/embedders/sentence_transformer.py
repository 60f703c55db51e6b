"""SentenceTransformer-based embedding provider."""

import asyncio

from sentence_transformers import SentenceTransformer


class SentenceTransformerEmbedder:
    """Embedding provider using sentence-transformers library.

    Uses all-MiniLM-L6-v2 by default - a fast, lightweight model
    that produces good quality embeddings for semantic search.
    Encoding runs in a worker thread so the event loop is not blocked.
    """

    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, model_name: str | None = None):
        """Initialize the embedder.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Defaults to all-MiniLM-L6-v2.
        """
        self._model_name = model_name or self.DEFAULT_MODEL
        self._model: SentenceTransformer | None = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the model on first access."""
        if self._model is None:
            self._model = SentenceTransformer(self._model_name)
        return self._model

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    @property
    def model_name(self) -> str:
        return self._model_name

    async def embed(self, text: str) -> list[float]:
        """Generate a normalized embedding for one text."""
        embedding = await asyncio.to_thread(
            self.model.encode,
            text,
            convert_to_numpy=True,
            normalize_embeddings=True,  # For cosine similarity
        )
        return embedding.tolist()
