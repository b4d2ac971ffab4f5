"""In-memory vector index for local runs and tests."""

from __future__ import annotations

import math

from rag_server.retrieval.base import VectorStoreBase
from rag_server.retrieval.models import IndexMatch, IndexRecord


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed index with brute-force cosine similarity search."""

    def __init__(self, collection_name: str = "memory") -> None:
        super().__init__(collection_name)
        self.records: dict[str, IndexRecord] = {}

    def upsert(self, records: list[IndexRecord]) -> None:
        for record in records:
            self.records[record.id] = record.model_copy(deep=True)

    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 3,
        include_metadata: bool = True,
    ) -> list[IndexMatch]:
        scored = [
            IndexMatch(
                id=record.id,
                score=_cosine_similarity(vector, record.values),
                metadata=dict(record.metadata) if include_metadata else {},
            )
            for record in self.records.values()
        ]
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[:top_k]

    def health_check(self) -> bool:
        return True

    def delete(self, ids: list[str]) -> None:
        for record_id in ids:
            self.records.pop(record_id, None)
