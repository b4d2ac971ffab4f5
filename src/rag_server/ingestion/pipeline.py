"""Ingestion pipeline: chunk, embed, and upsert documents in one batch."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rag_server.config import settings
from rag_server.errors import IndexServiceError, ValidationError
from rag_server.ingestion.chunker import chunk_documents
from rag_server.ingestion.loader import fetch_pdf, load_directory
from rag_server.ingestion.records import IdStrategy, build_records, epoch_ms
from rag_server.retrieval.models import IngestionResult

if TYPE_CHECKING:
    from langchain_core.documents import Document

    from rag_server.ingestion.embedder import TimeoutEmbedder
    from rag_server.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Chunk → sanitise/embed → single upsert.

    All-or-nothing per invocation: any embedding failure aborts before
    the index is touched, and a failed upsert is reported without
    partial-success tracking.  Callers retry the whole call.

    Parameters
    ----------
    store:
        Vector-index backend.  Defaults to
        :func:`~rag_server.retrieval.retriever.get_vector_store`.
    embedder:
        Timeout-bounded embedder; chunks use its ingestion bound.
    id_strategy:
        ``batch_local`` (idempotent re-ingestion) or ``time_seeded``.
    chunk_size / chunk_overlap:
        Window configuration forwarded to the chunker.
    max_workers:
        Concurrent embedding calls per batch.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        embedder: TimeoutEmbedder | None = None,
        *,
        id_strategy: IdStrategy | str = settings.id_strategy,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        max_workers: int = settings.embedding_workers,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        if store is None:
            from rag_server.retrieval.retriever import get_vector_store

            store = get_vector_store()
        if embedder is None:
            from rag_server.ingestion.embedder import TimeoutEmbedder

            embedder = TimeoutEmbedder()
        self._store = store
        self._embedder = embedder
        self.id_strategy = IdStrategy(id_strategy)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_workers = max_workers
        self._clock = clock

    def ingest(self, documents: list[Document], extra: Mapping[str, Any] | None = None) -> IngestionResult:
        """Index *documents*, attaching *extra* metadata to every record.

        Documents whose text is empty or whitespace are skipped.
        """
        indexable = [doc for doc in documents if doc.page_content.strip()]
        if len(indexable) < len(documents):
            logger.info("Skipping %d blank documents", len(documents) - len(indexable))
        chunks = chunk_documents(indexable, self.chunk_size, self.chunk_overlap)
        logger.info("Split %d documents into %d chunks", len(indexable), len(chunks))
        if not chunks:
            return IngestionResult(chunk_count=0)

        records = build_records(
            chunks,
            self._embedder,
            self.id_strategy,
            extra,
            max_workers=self.max_workers,
            clock=self._clock,
        )

        logger.info("Uploading %d vectors to '%s'", len(records), self._store.collection_name)
        try:
            self._store.upsert(records)
        except Exception as exc:
            raise IndexServiceError(f"Upsert failed: {exc}") from exc
        logger.info("Vectors uploaded successfully")
        return IngestionResult(chunk_count=len(records), ids=[r.id for r in records])

    def ingest_directory(self, path: str | Path = settings.corpus_dir, glob: str = settings.corpus_glob) -> IngestionResult:
        """Index every file under *path* matching *glob* (local corpus trigger)."""
        return self.ingest(load_directory(path, glob))

    def ingest_url(self, url: str, extra: Mapping[str, Any] | None = None) -> IngestionResult:
        """Fetch the PDF at *url* and index it.

        ``source`` defaults to *url* unless *extra* provides one.
        """
        if not url or not url.strip():
            raise ValidationError("Document URL is required")
        documents = fetch_pdf(url)
        return self.ingest(documents, {"source": url, **(extra or {})})


def main() -> None:
    """Index the local corpus directory (``rag-server-ingest``)."""
    logging.basicConfig(level=logging.INFO)
    result = IngestionPipeline().ingest_directory()
    logger.info("Indexed %d chunks from %s", result.chunk_count, settings.corpus_dir)


if __name__ == "__main__":
    main()
