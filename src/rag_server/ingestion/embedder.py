"""Embedding backends and the timeout-bounded embedder."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent import futures
from numbers import Real
from typing import TYPE_CHECKING

from rag_server.config import settings
from rag_server.errors import EmbeddingServiceError, EmbeddingTimeout

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function() -> Embeddings:
    """Return the configured LangChain embedding backend.

    ``settings.embedding_provider`` selects between a local
    sentence-transformer (``"huggingface"``) and the OpenAI API
    (``"openai"``).  Imports are deferred so that only the selected
    backend has to be installed and loaded.
    """
    provider = settings.embedding_provider.lower()
    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=settings.embedding_model)
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(model=settings.embedding_model, api_key=settings.openai_api_key)
    raise ValueError(f"Unsupported embedding_provider: {settings.embedding_provider!r}")


def _as_vector(response: object) -> list[float]:
    if isinstance(response, (str, bytes)) or not isinstance(response, Sequence):
        raise EmbeddingServiceError(
            f"Embedding service returned {type(response).__name__}, expected a sequence of floats"
        )
    if not all(isinstance(v, Real) and not isinstance(v, bool) for v in response):
        raise EmbeddingServiceError("Embedding service returned non-numeric vector components")
    return [float(v) for v in response]


class TimeoutEmbedder:
    """Wrap an :class:`~langchain_core.embeddings.Embeddings` with an optional time bound.

    Each call issues exactly one ``embed_query`` request and never
    retries.  When a timeout applies, the request runs on a worker
    daemon thread and the caller waits at most ``timeout_ms``; on expiry
    :class:`EmbeddingTimeout` is raised and the request is left to finish
    (or not) in the background without holding up process shutdown.  Backend exceptions surface as
    :class:`EmbeddingServiceError`.

    Parameters
    ----------
    embeddings:
        The embedding backend.  Defaults to :func:`get_embedding_function`.
    query_timeout_ms:
        Bound applied by :meth:`embed_query` (interactive path).
    ingest_timeout_ms:
        Bound applied by :meth:`embed_chunk` (bulk ingestion).  ``None``
        waits as long as the backend takes.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        query_timeout_ms: int | None = settings.query_timeout_ms,
        ingest_timeout_ms: int | None = settings.ingest_timeout_ms,
    ) -> None:
        self._embeddings = embeddings if embeddings is not None else get_embedding_function()
        self.query_timeout_ms = query_timeout_ms
        self.ingest_timeout_ms = ingest_timeout_ms

    def embed(self, text: str, timeout_ms: int | None = None) -> list[float]:
        """Embed *text*, failing with :class:`EmbeddingTimeout` after *timeout_ms*."""
        if timeout_ms is None:
            return self._call(text)

        future: futures.Future[list[float]] = futures.Future()

        def _run() -> None:
            try:
                future.set_result(self._call(text))
            except BaseException as exc:
                future.set_exception(exc)

        # Daemon worker: an abandoned call must not block interpreter exit.
        threading.Thread(target=_run, name="embed", daemon=True).start()
        try:
            return future.result(timeout=timeout_ms / 1000)
        except futures.TimeoutError:
            logger.warning("Embedding call exceeded %dms; abandoning request", timeout_ms)
            raise EmbeddingTimeout(timeout_ms) from None

    def embed_query(self, text: str) -> list[float]:
        """Embed a search query under the query-path timeout."""
        return self.embed(text, self.query_timeout_ms)

    def embed_chunk(self, text: str) -> list[float]:
        """Embed a document chunk under the ingestion-path timeout."""
        return self.embed(text, self.ingest_timeout_ms)

    def _call(self, text: str) -> list[float]:
        try:
            response = self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingServiceError(f"Embedding service failed: {exc}") from exc
        return _as_vector(response)
