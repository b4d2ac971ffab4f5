"""FastAPI application exposing ingestion and search as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from rag_server.config import settings
from rag_server.errors import RAGServerError, ValidationError
from rag_server.ingestion.pipeline import IngestionPipeline
from rag_server.retrieval.retriever import QueryPipeline

logger = logging.getLogger(__name__)

app = FastAPI(
    title="RAG Server API",
    version="0.1.0",
    description="Ingest documents into a vector index and search them by similarity.",
)


# ── Pipeline providers (overridden in tests) ──────────────────────────
@lru_cache(maxsize=1)
def get_query_pipeline() -> QueryPipeline:
    return QueryPipeline()


@lru_cache(maxsize=1)
def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline()


# ── Request / Response schemas ────────────────────────────────────────
class IngestRequest(BaseModel):
    """Remote document to fetch and index."""

    url: str | None = None
    source: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class IngestResponse(BaseModel):
    """Number of chunks written to the index."""

    chunk_count: int


class SearchHit(BaseModel):
    """One retrieved chunk."""

    content: str
    metadata: dict[str, Any] = {}


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(RAGServerError)
async def pipeline_error_handler(request: Request, exc: RAGServerError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/search", response_model=list[SearchHit])
def search(
    q: str | None = None,
    top_k: int = settings.default_top_k,
    pipeline: QueryPipeline = Depends(get_query_pipeline),
) -> list[SearchHit]:
    """Return the chunks most similar to ``q``."""
    if not q:
        raise ValidationError("Query parameter 'q' is required")
    results = pipeline.query(q, top_k=top_k)
    return [SearchHit(content=r.content, metadata=r.metadata) for r in results]


@app.post("/ingest", response_model=IngestResponse)
def ingest(
    request: IngestRequest,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> IngestResponse:
    """Fetch the PDF at ``url`` and index it."""
    if not request.url:
        raise ValidationError("PDF URL is required")
    extra = dict(request.metadata)
    if request.source:
        extra["source"] = request.source
    result = pipeline.ingest_url(request.url, extra)
    return IngestResponse(chunk_count=result.chunk_count)


@app.post("/ingest/local", response_model=IngestResponse)
def ingest_local(pipeline: IngestionPipeline = Depends(get_ingestion_pipeline)) -> IngestResponse:
    """Index the configured local corpus directory."""
    result = pipeline.ingest_directory(settings.corpus_dir, settings.corpus_glob)
    return IngestResponse(chunk_count=result.chunk_count)
