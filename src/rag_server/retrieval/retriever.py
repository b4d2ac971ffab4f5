"""Query pipeline: bounded query embedding, similarity search, result shaping.

Usage::

    from rag_server.retrieval.retriever import QueryPipeline

    pipeline = QueryPipeline()
    for result in pipeline.query("What is X?", top_k=3):
        print(result.metadata.get("source"), result.content[:80])
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from rag_server.config import settings
from rag_server.errors import IndexServiceError, ValidationError
from rag_server.retrieval.base import VectorStoreBase
from rag_server.retrieval.models import IndexMatch, QueryResult

if TYPE_CHECKING:
    from rag_server.ingestion.embedder import TimeoutEmbedder

logger = logging.getLogger(__name__)


def get_vector_store() -> VectorStoreBase:
    """Return the index backend selected by ``settings.vector_store``."""
    backend = settings.vector_store.lower()
    if backend == "chroma":
        from rag_server.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore()
    if backend == "memory":
        from rag_server.retrieval.inmemory_store import InMemoryVectorStore

        return InMemoryVectorStore()
    raise ValueError(f"Unsupported vector_store: {settings.vector_store!r}")


def format_matches(
    matches: list[IndexMatch],
    placeholder: str = settings.missing_content_placeholder,
) -> list[QueryResult]:
    """Shape index matches into :class:`QueryResult` objects, keeping their order.

    A match whose ``text`` metadata field is missing, empty or not a
    string gets *placeholder* as its content.
    """
    results = []
    for match in matches:
        text = match.metadata.get("text")
        content = text if isinstance(text, str) and text else placeholder
        results.append(QueryResult(content=content, metadata=match.metadata, id=match.id, score=match.score))
    return results


class QueryPipeline:
    """Embed a question and return the closest chunks from the index.

    Parameters
    ----------
    store:
        Vector-index backend.  Defaults to :func:`get_vector_store`.
    embedder:
        Timeout-bounded embedder; its ``query_timeout_ms`` bounds the
        embedding step.
    default_k:
        Number of results when :meth:`query` is called without ``top_k``.
    placeholder:
        Content used for matches whose metadata has no ``text``.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        embedder: TimeoutEmbedder | None = None,
        *,
        default_k: int = settings.default_top_k,
        placeholder: str = settings.missing_content_placeholder,
    ) -> None:
        if embedder is None:
            from rag_server.ingestion.embedder import TimeoutEmbedder

            embedder = TimeoutEmbedder()
        self._store = store if store is not None else get_vector_store()
        self._embedder = embedder
        self.default_k = default_k
        self.placeholder = placeholder

    def query(self, text: str, top_k: int | None = None) -> list[QueryResult]:
        """Return up to *top_k* chunks most similar to *text*.

        Raises
        ------
        ValidationError
            *text* is blank or *top_k* is not positive.
        EmbeddingTimeout
            The query embedding exceeded the query-path bound.
        EmbeddingServiceError
            The embedding backend failed.
        IndexServiceError
            The similarity query failed.
        """
        if not text or not text.strip():
            raise ValidationError("Query text is required")
        top_k = self.default_k if top_k is None else top_k
        if top_k < 1:
            raise ValidationError(f"top_k must be a positive integer, got {top_k}")

        t0 = time.monotonic()
        vector = self._embedder.embed_query(text)
        logger.info("Query embedding took %.0fms", (time.monotonic() - t0) * 1000)

        t0 = time.monotonic()
        try:
            matches = self._store.query(vector, top_k=top_k, include_metadata=True)
        except Exception as exc:
            raise IndexServiceError(f"Similarity query failed: {exc}") from exc
        logger.info("Similarity search took %.0fms", (time.monotonic() - t0) * 1000)

        logger.info("Query results: %d matches found", len(matches))
        return format_matches(matches, self.placeholder)
