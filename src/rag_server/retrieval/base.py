"""Abstract base class for vector-index backends.

Adding a new backend (Pinecone, Weaviate, Qdrant …) only requires
subclassing :class:`VectorStoreBase` and implementing the three abstract
methods.  The ingestion and query pipelines are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from rag_server.retrieval.models import IndexMatch, IndexRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-index interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, records: list[IndexRecord]) -> None:
        """Insert *records*, overwriting any existing record with the same id.

        Treated as atomic by callers: either every record is written or
        the call raises.
        """
        ...

    @abstractmethod
    def query(
        self,
        vector: list[float],
        *,
        top_k: int = 3,
        include_metadata: bool = True,
    ) -> list[IndexMatch]:
        """Return up to *top_k* nearest neighbours of *vector*, most similar first.

        Parameters
        ----------
        vector:
            Dense query embedding.
        top_k:
            Maximum number of matches.
        include_metadata:
            When ``False`` matches carry an empty ``metadata`` dict.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, ids: list[str]) -> None:
        """Delete records by their IDs.  Optional: raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")
