"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_provider: str = Field(
        default="huggingface",
        description="Embedding backend: 'huggingface' (local sentence-transformers) or 'openai'",
    )
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    openai_api_key: str = Field(default="", description="OpenAI API key (openai provider only)")
    query_timeout_ms: int = Field(default=5000, description="Upper bound for query-path embedding calls")
    ingest_timeout_ms: int | None = Field(
        default=None,
        description="Upper bound for ingestion-path embedding calls; unset means no bound",
    )
    embedding_workers: int = Field(default=1, description="Parallel embedding calls during ingestion")

    # Vector store
    vector_store: str = Field(default="chroma", description="Index backend: 'chroma' or 'memory'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "rag_server"

    # Chunking / ids
    chunk_size: int = 1000
    chunk_overlap: int = 200
    id_strategy: str = Field(default="batch_local", description="'batch_local' or 'time_seeded'")

    # Query
    default_top_k: int = 3
    missing_content_placeholder: str = "No content available"

    # Document sources
    corpus_dir: str = "data/books"
    corpus_glob: str = "**/*.md"
    fetch_timeout_s: float = 60.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import `settings` wherever needed.
settings = Settings()
