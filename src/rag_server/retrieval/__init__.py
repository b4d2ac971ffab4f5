"""
Retrieval: vector-index access and the query pipeline.

This module wraps the vector index behind a clean interface so that
callers never need to know which backend is serving queries.

Public surface
--------------
- :class:`QueryPipeline`: embed a question and return the top-K chunks.
- :class:`VectorStoreBase`: abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorStore`: default Chroma backend.
- :class:`InMemoryVectorStore`: dict-backed backend for local runs.
- :class:`IndexRecord`, :class:`IndexMatch`, :class:`QueryResult`: data models.
"""

from rag_server.retrieval.base import VectorStoreBase
from rag_server.retrieval.inmemory_store import InMemoryVectorStore
from rag_server.retrieval.models import IndexMatch, IndexRecord, IngestionResult, QueryResult
from rag_server.retrieval.retriever import QueryPipeline, format_matches, get_vector_store

__all__ = [
    "ChromaVectorStore",
    "InMemoryVectorStore",
    "IndexMatch",
    "IndexRecord",
    "IngestionResult",
    "QueryPipeline",
    "QueryResult",
    "VectorStoreBase",
    "format_matches",
    "get_vector_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from rag_server.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
