"""Domain models exchanged with the vector index and returned to callers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class IndexRecord(BaseModel):
    """A vector ready to be upserted.

    Attributes
    ----------
    id:
        Identifier, unique within the index.  Upserting an existing id
        overwrites the stored record.
    values:
        The embedding vector.
    metadata:
        Flat metadata.  Always contains the chunk text under ``text``.
    """

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class IndexMatch(BaseModel):
    """A single nearest-neighbour hit as returned by the index."""

    id: str
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueryResult(BaseModel):
    """A retrieved chunk shaped for downstream use.

    ``id`` and ``score`` are copied from the index match when the
    backend reports them.
    """

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    id: str | None = None
    score: float | None = None

    def __str__(self) -> str:  # noqa: D105
        source = self.metadata.get("source", "unknown")
        return f"[{source}] {self.content[:120]}…"


class IngestionResult(BaseModel):
    """Outcome of one ingestion invocation."""

    chunk_count: int
    ids: list[str] = Field(default_factory=list)
