"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from rag_server.ingestion.embedder import TimeoutEmbedder
from rag_server.retrieval.inmemory_store import InMemoryVectorStore

from tests.fakes import EMBEDDING_DIM, BlockingEmbeddings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def fake_embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=EMBEDDING_DIM)


@pytest.fixture()
def embedder(fake_embeddings: DeterministicFakeEmbedding) -> TimeoutEmbedder:
    return TimeoutEmbedder(fake_embeddings, query_timeout_ms=3000, ingest_timeout_ms=None)


@pytest.fixture()
def blocking_embeddings():
    backend = BlockingEmbeddings()
    yield backend
    backend.release.set()


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()
