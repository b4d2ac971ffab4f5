"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from rag_server.config import settings
from rag_server.errors import IndexServiceError
from rag_server.retrieval.base import VectorStoreBase
from rag_server.retrieval.models import IndexMatch, IndexRecord

logger = logging.getLogger(__name__)


def _distance_to_score(distance: float | None) -> float | None:
    """Convert a Chroma distance into a 0-1 similarity score."""
    if distance is None:
        return None
    return 1.0 / (1.0 + distance)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector index.

    The chunk text is stored both as the Chroma document and under the
    ``text`` metadata key, so matches read back the same shape that was
    upserted.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        HNSW space (``cosine`` | ``l2`` | ``ip``) used when the
        collection is created.
    client:
        Pre-built Chroma client; overrides *host* / *port*.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = "cosine",
        client: Any = None,
    ) -> None:
        super().__init__(collection_name)
        try:
            self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": distance_metric},
            )
        except Exception as exc:
            raise IndexServiceError(f"Could not open collection '{collection_name}': {exc}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, records: list[IndexRecord]) -> None:
        if not records:
            return
        self._collection.upsert(
            ids=[r.id for r in records],
            embeddings=[r.values for r in records],
            documents=[r.metadata.get("text", "") for r in records],
            metadatas=[r.metadata for r in records],
        )
        logger.info("Upserted %d vectors into collection '%s'", len(records), self.collection_name)

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 3,
        include_metadata: bool = True,
    ) -> list[IndexMatch]:
        include = ["distances"]
        if include_metadata:
            include.append("metadatas")

        results = self._collection.query(
            query_embeddings=[vector],
            n_results=top_k,
            include=include,
        )

        ids = results.get("ids", [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        metas = (results.get("metadatas") or [[None] * len(ids)])[0]

        matches: list[IndexMatch] = []
        for i, doc_id in enumerate(ids):
            dist = distances[i] if i < len(distances) else None
            meta = metas[i] if include_metadata and i < len(metas) else None
            matches.append(IndexMatch(id=doc_id, score=_distance_to_score(dist), metadata=meta or {}))
        return matches

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        self._collection.delete(ids=ids)
