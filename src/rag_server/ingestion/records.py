"""Vector batch building: chunk identity, embedding and metadata assembly."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from concurrent import futures
from enum import Enum
from typing import TYPE_CHECKING, Any

from rag_server.ingestion.sanitizer import sanitize_metadata
from rag_server.retrieval.models import IndexRecord

if TYPE_CHECKING:
    from langchain_core.documents import Document

    from rag_server.ingestion.embedder import TimeoutEmbedder

logger = logging.getLogger(__name__)


class IdStrategy(str, Enum):
    """How record ids are derived.

    ``BATCH_LOCAL`` ids (``chunk-<i>``) repeat across runs, so
    re-ingesting an unchanged corpus overwrites the previous vectors.
    ``TIME_SEEDED`` ids (``chunk-<start_ms>-<i>``) differ per run, so
    re-ingestion adds new records next to the old ones.
    """

    BATCH_LOCAL = "batch_local"
    TIME_SEEDED = "time_seeded"


def epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def assign_ids(
    count: int,
    strategy: IdStrategy | str = IdStrategy.BATCH_LOCAL,
    *,
    clock: Callable[[], int] = epoch_ms,
) -> list[str]:
    """Return *count* record ids for one ingestion run."""
    strategy = IdStrategy(strategy)
    if strategy is IdStrategy.TIME_SEEDED:
        started = clock()
        return [f"chunk-{started}-{i}" for i in range(count)]
    return [f"chunk-{i}" for i in range(count)]


def record_metadata(text: str, metadata: Mapping[str, Any], extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Merge sanitised chunk metadata, caller extras and the chunk text.

    Later sources win: sanitised fields, then *extra* (e.g. ``source``),
    then ``text``.
    """
    return {**sanitize_metadata(metadata), **sanitize_metadata(extra or {}), "text": text}


def build_records(
    chunks: list[Document],
    embedder: TimeoutEmbedder,
    id_strategy: IdStrategy | str = IdStrategy.BATCH_LOCAL,
    extra: Mapping[str, Any] | None = None,
    *,
    max_workers: int = 1,
    clock: Callable[[], int] = epoch_ms,
) -> list[IndexRecord]:
    """Embed *chunks* and assemble one :class:`IndexRecord` per chunk.

    Ids are assigned up front, so the result does not depend on the
    order in which embedding calls complete.  With ``max_workers > 1``
    chunks are embedded concurrently; output order still follows
    *chunks*.  The first embedding failure aborts the whole batch.
    """
    ids = assign_ids(len(chunks), id_strategy, clock=clock)
    texts = [chunk.page_content for chunk in chunks]

    t0 = time.monotonic()
    if max_workers > 1 and len(texts) > 1:
        with futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingest-embed") as pool:
            vectors = list(pool.map(embedder.embed_chunk, texts))
    else:
        vectors = [embedder.embed_chunk(text) for text in texts]
    logger.info("Embedded %d chunks in %.2fs", len(vectors), time.monotonic() - t0)

    return [
        IndexRecord(id=record_id, values=vector, metadata=record_metadata(chunk.page_content, chunk.metadata, extra))
        for record_id, chunk, vector in zip(ids, chunks, vectors)
    ]
