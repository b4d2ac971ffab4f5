"""Text chunking strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langchain_text_splitters import TextSplitter

from rag_server.config import settings

if TYPE_CHECKING:
    from langchain_core.documents import Document


class OverlappingWindowSplitter(TextSplitter):
    """Fixed-width character windows with a constant overlap.

    Window ``i`` starts at ``i * (chunk_size - chunk_overlap)``.  Every
    window except the last is exactly ``chunk_size`` characters long and
    shares its final ``chunk_overlap`` characters with the next one, so
    dropping the leading overlap of each later chunk reconstructs the
    text.  Text no longer than ``chunk_size`` comes back as one chunk.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200, **kwargs: Any) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size ({chunk_size}) must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
            )
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)

    @property
    def stride(self) -> int:
        return self._chunk_size - self._chunk_overlap

    def split_text(self, text: str) -> list[str]:
        if len(text) <= self._chunk_size:
            return [text]
        chunks: list[str] = []
        start = 0
        while True:
            chunks.append(text[start : start + self._chunk_size])
            if start + self._chunk_size >= len(text):
                return chunks
            start += self.stride


def chunk_documents(
    documents: list[Document],
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
    *,
    add_start_index: bool = False,
) -> list[Document]:
    """Split *documents* into overlapping chunks for embedding.

    Parameters
    ----------
    documents:
        Source documents produced by a loader.
    chunk_size:
        Maximum number of characters per chunk (``settings.chunk_size``
        when omitted).
    chunk_overlap:
        Number of characters shared by consecutive chunks
        (``settings.chunk_overlap`` when omitted).
    add_start_index:
        Record each chunk's character offset under ``start_index``.

    Returns
    -------
    list[Document]
        Chunks in document order, then textual order.  Each chunk carries
        a copy of its source document's metadata.
    """
    splitter = OverlappingWindowSplitter(
        chunk_size=settings.chunk_size if chunk_size is None else chunk_size,
        chunk_overlap=settings.chunk_overlap if chunk_overlap is None else chunk_overlap,
        add_start_index=add_start_index,
    )
    return splitter.split_documents(documents)
