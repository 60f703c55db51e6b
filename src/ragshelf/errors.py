"""Exception hierarchy for ragshelf.

Every error carries a human-readable message plus a ``details`` dict with
the vendor, document or operation involved, so failures can be logged with
context. Nothing in the package retries; errors propagate to the caller.
"""

from typing import Any, Optional


class RagShelfError(Exception):
    """Base exception for all ragshelf errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class StoreUnavailableError(RagShelfError):
    """Raised when the document store cannot be read or written."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class EmbeddingFailureError(RagShelfError):
    """Raised when the provider errors or returns a malformed vector."""

    def __init__(
        self,
        message: str,
        document_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if document_id:
            details["document_id"] = document_id
        super().__init__(message, details)


class DimensionMismatchError(RagShelfError, ValueError):
    """Raised when a query vector and a stored vector differ in length.

    This signals mixed embedding models and is never retried.
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        chunk_id: Optional[str] = None,
    ) -> None:
        details: dict[str, Any] = {"expected": expected, "actual": actual}
        if chunk_id:
            details["chunk_id"] = chunk_id
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            details,
        )
        self.expected = expected
        self.actual = actual
