"""Document loaders: local corpus traversal and remote PDF fetch."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import requests
from langchain_community.document_loaders import DirectoryLoader, TextLoader
from langchain_core.documents import Document
from pypdf import PdfReader

from rag_server.config import settings
from rag_server.errors import DocumentAcquisitionError

logger = logging.getLogger(__name__)


def load_directory(path: str | Path, glob: str = settings.corpus_glob) -> list[Document]:
    """Recursively load all text documents matching *glob* under *path*.

    Parameters
    ----------
    path:
        Root directory containing source documents.
    glob:
        File-matching pattern forwarded to ``DirectoryLoader``.

    Returns
    -------
    list[Document]
        One ``Document`` per file, with its path under ``source``.
    """
    if not Path(path).is_dir():
        raise DocumentAcquisitionError(f"Corpus directory not found: {path}")
    loader = DirectoryLoader(
        str(path),
        glob=glob,
        loader_cls=TextLoader,  # type: ignore[arg-type]
        loader_kwargs={"encoding": "utf-8"},
    )
    try:
        documents = loader.load()
    except Exception as exc:
        raise DocumentAcquisitionError(f"Failed to load documents from {path}: {exc}") from exc
    # DirectoryLoader does not guarantee a stable order; ids depend on it.
    documents.sort(key=lambda doc: doc.metadata.get("source", ""))
    logger.info("Loaded %d documents from %s", len(documents), path)
    return documents


def parse_pdf(data: bytes, source: str) -> list[Document]:
    """Turn PDF bytes into one ``Document`` per page that has text.

    Pages without extractable text (scans, images) are skipped; ``page``
    keeps the zero-based position in the original file.
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        raise DocumentAcquisitionError(f"Failed to parse PDF from {source}: {exc}") from exc
    return [
        Document(
            page_content=text,
            metadata={"source": source, "page": index, "total_pages": len(pages)},
        )
        for index, text in enumerate(pages)
        if text.strip()
    ]


def fetch_pdf(url: str, *, timeout: float = settings.fetch_timeout_s) -> list[Document]:
    """Download the PDF at *url* and parse it into per-page documents.

    Raises
    ------
    DocumentAcquisitionError
        The request failed, returned a non-success status, or the body
        is not a readable PDF.
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise DocumentAcquisitionError(f"Failed to fetch PDF: {exc}") from exc
    if not response.ok:
        raise DocumentAcquisitionError(f"Failed to fetch PDF: {response.status_code} {response.reason}")

    documents = parse_pdf(response.content, source=url)
    logger.info("Fetched %s (%d pages)", url, len(documents))
    return documents
