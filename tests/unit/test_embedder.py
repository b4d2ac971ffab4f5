"""Unit tests for the timeout-bounded embedder."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from rag_server.errors import EmbeddingServiceError, EmbeddingTimeout
from rag_server.ingestion.embedder import TimeoutEmbedder, get_embedding_function

from tests.fakes import EMBEDDING_DIM, BlockingEmbeddings, FailingEmbeddings


class TestTimeoutEmbedder:
    def test_returns_float_vector(self, embedder: TimeoutEmbedder) -> None:
        vector = embedder.embed_query("What is X?")
        assert len(vector) == EMBEDDING_DIM
        assert all(type(v) is float for v in vector)

    def test_same_text_same_vector(self, embedder: TimeoutEmbedder) -> None:
        assert embedder.embed("hello", 1000) == embedder.embed("hello")

    def test_service_failure_is_wrapped(self) -> None:
        embedder = TimeoutEmbedder(FailingEmbeddings(fail_on="boom"), query_timeout_ms=1000)
        with pytest.raises(EmbeddingServiceError, match="embedding backend unreachable") as exc_info:
            embedder.embed_query("boom")
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_service_failure_without_timeout(self) -> None:
        embedder = TimeoutEmbedder(FailingEmbeddings(fail_on="boom"), ingest_timeout_ms=None)
        with pytest.raises(EmbeddingServiceError):
            embedder.embed_chunk("boom")

    @pytest.mark.parametrize("response", [None, "0.1,0.2", [0.1, "x"], [True, False], 3.0])
    def test_malformed_response(self, response: object) -> None:
        backend = MagicMock()
        backend.embed_query.return_value = response
        embedder = TimeoutEmbedder(backend, query_timeout_ms=1000)
        with pytest.raises(EmbeddingServiceError):
            embedder.embed_query("q")

    def test_times_out_at_bound(self, blocking_embeddings: BlockingEmbeddings) -> None:
        embedder = TimeoutEmbedder(blocking_embeddings, query_timeout_ms=200)
        t0 = time.monotonic()
        with pytest.raises(EmbeddingTimeout) as exc_info:
            embedder.embed_query("never answered")
        elapsed = time.monotonic() - t0
        assert 0.19 <= elapsed < 1.5
        assert exc_info.value.timeout_ms == 200
        assert blocking_embeddings.calls == 1

    def test_single_request_per_call(self, blocking_embeddings: BlockingEmbeddings) -> None:
        embedder = TimeoutEmbedder(blocking_embeddings, query_timeout_ms=50)
        with pytest.raises(EmbeddingTimeout):
            embedder.embed_query("q")
        with pytest.raises(EmbeddingTimeout):
            embedder.embed_query("q")
        assert blocking_embeddings.calls == 2

    def test_chunk_path_has_no_bound_by_default(self) -> None:
        class SlowEmbeddings(DeterministicFakeEmbedding):
            def embed_query(self, text: str) -> list[float]:
                time.sleep(0.2)
                return super().embed_query(text)

        embedder = TimeoutEmbedder(SlowEmbeddings(size=4), query_timeout_ms=50, ingest_timeout_ms=None)
        assert len(embedder.embed_chunk("slow but fine")) == 4
        with pytest.raises(EmbeddingTimeout):
            embedder.embed_query("slow and interactive")

    def test_abandoned_call_does_not_block_shutdown(self, blocking_embeddings: BlockingEmbeddings) -> None:
        embedder = TimeoutEmbedder(blocking_embeddings, query_timeout_ms=50)
        with pytest.raises(EmbeddingTimeout):
            embedder.embed_query("q")
        stuck = [t for t in threading.enumerate() if t.name == "embed" and t.is_alive()]
        assert stuck
        assert all(t.daemon for t in stuck)

    def test_chunk_timeout_message_names_the_call(self, blocking_embeddings: BlockingEmbeddings) -> None:
        embedder = TimeoutEmbedder(blocking_embeddings, ingest_timeout_ms=50)
        with pytest.raises(EmbeddingTimeout, match="Embedding call timed out after 50ms"):
            embedder.embed_chunk("chunk")

    def test_chunk_path_bound_is_configurable(self, blocking_embeddings: BlockingEmbeddings) -> None:
        embedder = TimeoutEmbedder(blocking_embeddings, ingest_timeout_ms=50)
        with pytest.raises(EmbeddingTimeout):
            embedder.embed_chunk("chunk")

    def test_timeout_error_message(self) -> None:
        assert EmbeddingTimeout(3000).message == "Embedding call timed out after 3000ms"


class TestGetEmbeddingFunction:
    def test_huggingface_provider(self) -> None:
        with (
            patch("rag_server.ingestion.embedder.settings") as mock_settings,
            patch("langchain_huggingface.HuggingFaceEmbeddings") as mock_cls,
        ):
            mock_settings.embedding_provider = "huggingface"
            mock_settings.embedding_model = "some/model"
            get_embedding_function()
        mock_cls.assert_called_once_with(model_name="some/model")

    def test_unknown_provider_raises(self) -> None:
        with patch("rag_server.ingestion.embedder.settings") as mock_settings:
            mock_settings.embedding_provider = "word2vec"
            with pytest.raises(ValueError, match="Unsupported embedding_provider"):
                get_embedding_function()
