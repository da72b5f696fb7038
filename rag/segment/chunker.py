# rag/segment/chunker.py
import logging
from typing import Any, Dict, Iterator, List, Optional

from langchain_core.documents import Document

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


def _check_window(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0:
        raise ValueError("overlap must be non-negative")
    if overlap >= chunk_size:
        raise ValueError("overlap must be smaller than chunk_size")


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> Iterator[Dict[str, Any]]:
    """
    Yield fixed-size character windows over `text`.

    Consecutive windows start `chunk_size - overlap` characters apart, so each pair
    shares exactly `overlap` characters; the last window may be shorter. Every
    character of the input lands in at least one window.

    Each yielded dict includes: text, char_start, char_end.
    """
    _check_window(chunk_size, overlap)
    if not text:
        return

    stride = chunk_size - overlap
    total = len(text)
    index = 0

    while index < total:
        end = min(index + chunk_size, total)
        yield {"text": text[index:end], "char_start": index, "char_end": end}
        if end == total:
            break
        index += stride


def chunk_document(
    text: str,
    metadata: Optional[Dict[str, Any]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[Document]:
    """Return LangChain Documents for one page, carrying the page metadata plus offsets."""
    if not text or not text.strip():
        return []

    base_meta = dict(metadata or {})
    chunks: List[Document] = []
    for idx, chunk in enumerate(chunk_text(text, chunk_size=chunk_size, overlap=overlap)):
        meta = dict(base_meta)
        meta.update(
            chunk_index=idx,
            char_start=chunk["char_start"],
            char_end=chunk["char_end"],
        )
        chunks.append(Document(page_content=chunk["text"], metadata=meta))

    logger.debug(
        "Split %d chars from %s into %d chunks",
        len(text),
        base_meta.get("source", "<unknown>"),
        len(chunks),
    )
    return chunks
