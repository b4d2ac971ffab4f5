"""Error taxonomy shared by the ingestion and query pipelines.

Every error aborts the current invocation. Nothing is retried
internally; the HTTP layer maps ``status_code`` onto the response.
"""

from __future__ import annotations


class RAGServerError(Exception):
    """Base class for pipeline failures reported to the caller."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RAGServerError):
    """Required input is missing or malformed (empty query, missing URL)."""

    status_code = 400


class DocumentAcquisitionError(RAGServerError):
    """A document could not be loaded or fetched."""

    status_code = 502


class EmbeddingTimeout(RAGServerError):
    """The embedding call did not finish within its bound."""

    status_code = 504

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Embedding call timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class EmbeddingServiceError(RAGServerError):
    """The embedding backend failed or returned a malformed response."""

    status_code = 502


class IndexServiceError(RAGServerError):
    """An upsert or query against the vector index failed."""

    status_code = 502
